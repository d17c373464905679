"""Custom exceptions for qvm."""


class ManagerError(RuntimeError):
    """Raised on unrecoverable configuration or runtime errors."""


class HomeDirectoryError(ManagerError):
    """The home directory (and therefore the storage root) cannot be determined."""


class UnsupportedArchError(ManagerError):
    pass


class BinaryNotFoundError(ManagerError):
    pass


class FirmwareNotFoundError(ManagerError):
    pass


class VmNotFoundError(ManagerError):
    pass


class VmRunningError(ManagerError):
    pass


class DiskProvisioningError(ManagerError):
    pass


class DescriptorParseError(ManagerError):
    """vm.json is missing, not valid JSON, or does not match the schema."""


class DescriptorIOError(ManagerError):
    """Filesystem failure while writing or removing VM files."""
