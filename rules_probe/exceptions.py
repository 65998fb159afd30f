class ProbeError(Exception):
    """Base class for every failure that ends a probe run."""

    code = 'ProbeError'

    def __init__(self, message: str = ''):
        self.message = message or self.code
        super().__init__(self.message)


class NoPrincipalError(ProbeError):
    code = 'NoPrincipal'

    def __init__(self):
        super().__init__('No authenticated principal; probe cannot proceed.')


class KeyAllocationError(ProbeError):
    code = 'KeyAllocationFailed'

    def __init__(self, collection: str, detail: str = ''):
        self.collection = collection
        super().__init__(f"Failed to allocate a key in '{collection}': {detail}")


class WriteRejectedError(ProbeError):
    code = 'WriteRejected'

    def __init__(self, key: str, detail: str = ''):
        self.key = key
        super().__init__(f"Write of '{key}' rejected: {detail}")


class ReadFailedError(ProbeError):
    code = 'ReadFailed'

    def __init__(self, key: str, detail: str = ''):
        self.key = key
        super().__init__(f"Read-back of '{key}' failed: {detail}")


class DeleteFailedError(ProbeError):
    code = 'DeleteFailed'

    def __init__(self, key: str, detail: str = ''):
        self.key = key
        super().__init__(f"Delete of '{key}' failed: {detail}")


class StoreError(Exception):
    """Transport or client library failure raised by a store implementation."""

    def __init__(self, operation: str, detail: str = ''):
        self.operation = operation
        self.message = f"Store operation '{operation}' failed: {detail}"
        super().__init__(self.message)


class IdentityError(Exception):
    def __init__(self, detail: str = ''):
        self.message = f"Could not verify credential: {detail}"
        super().__init__(self.message)
