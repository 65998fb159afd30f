from pydantic import BaseModel, Field

class SignalRequest(BaseModel):
    action: str = Field(..., min_length=1, max_length=256)

class SignalAck(BaseModel):
    accepted: bool

class HealthResponse(BaseModel):
    status: str
    action: str
    collection: str
