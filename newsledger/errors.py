"""Registry rule violations.

Each error carries a stable ``code`` (the same string the on-chain contract
asserts with) and the HTTP status the API answers with.
"""


class RegistryError(Exception):
    code = "RegistryError"
    status_code = 400


class InvalidFingerprint(RegistryError):
    code = "InvalidFingerprint"


class EmptyFingerprint(RegistryError):
    code = "EmptyFingerprint"


class InvalidCategory(RegistryError):
    code = "InvalidCategory"


class EmptyMetadata(RegistryError):
    code = "EmptyMetadata"


class DuplicateFingerprint(RegistryError):
    code = "DuplicateFingerprint"
    status_code = 409


class NotOwner(RegistryError):
    code = "NotOwner"
    status_code = 403


class SystemPaused(RegistryError):
    code = "SystemPaused"
    status_code = 503


class ReadOnlyRegistry(RegistryError):
    code = "ReadOnlyRegistry"
    status_code = 501


class CorruptEventLog(RegistryError):
    code = "CorruptEventLog"
