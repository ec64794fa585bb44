class BundleError(Exception):
    """Base class for ewbundle-specific errors."""


class BundleNotFound(BundleError):
    """A source file, archive or download directory does not exist."""


# Manifest (bundle.json) validation
class ManifestError(BundleError):
    pass


class MalformedManifest(ManifestError):
    pass


class MissingRequiredField(ManifestError):
    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field


class InvalidFieldFormat(ManifestError):
    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field


# Archive structure
class StructuralMismatch(BundleError):
    pass


class UnreadableArchive(StructuralMismatch):
    pass


# .edgerc profiles
class ProfileError(BundleError):
    pass
