"""Shape of the synthetic group record the probe writes.

Field names and types are a contract with the remote security rules: the
rules expect `departureTime` as a string and `createdBy` equal to the
writer's uid. Do not change them without changing the rules.
"""
import time
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .identity import Principal

ORIGIN_LABEL = 'Current Location'
DESTINATION_LABEL = 'Test Destination'
DEPARTURE_TIME = '1718545678'
AVAILABLE_SEATS = 4
PRICE_PER_PERSON = 0
MEMBER_NAME = 'Test User'


def now_millis() -> int:
    return int(time.time() * 1000)


class MemberInfo(BaseModel):
    name: str
    joined_at: int = Field(alias='joinedAt')

    model_config = ConfigDict(populate_by_name=True)


class ProbeRecord(BaseModel):
    id: str
    origin: str = Field(alias='from')
    destination: str = Field(alias='to')
    departure_time: str = Field(alias='departureTime')
    available_seats: int = Field(alias='availableSeats')
    price_per_person: int = Field(alias='pricePerPerson')
    created_at: int = Field(alias='createdAt')
    created_by: str = Field(alias='createdBy')
    members: Dict[str, MemberInfo]

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


def build_probe_record(key: str, principal: Principal, now_ms: Optional[int] = None) -> ProbeRecord:
    """Build the minimal record the rules should accept for `principal`."""
    ts = now_ms if now_ms is not None else now_millis()
    return ProbeRecord(
        id=key,
        origin=ORIGIN_LABEL,
        destination=DESTINATION_LABEL,
        departure_time=DEPARTURE_TIME,
        available_seats=AVAILABLE_SEATS,
        price_per_person=PRICE_PER_PERSON,
        created_at=ts,
        created_by=principal.uid,
        members={principal.uid: MemberInfo(name=MEMBER_NAME, joined_at=ts)},
    )


def payload_mismatches(written: dict, read_back: dict) -> Dict[str, tuple]:
    """Fields of `written` that came back different. Extra server fields are ignored."""
    diff = {}
    for k, v in written.items():
        if read_back.get(k) != v:
            diff[k] = (v, read_back.get(k))
    return diff
