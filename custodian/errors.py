"""
Registry error taxonomy for Custodian

Every registry failure is raised as a RegistryError subclass carrying a stable
symbolic kind and the numeric code used by the governance registries. Codes
are scoped per registry, so the class (not the code) identifies the failure.
"""


class RegistryError(ValueError):
    """Base class for all registry failures"""

    kind = "RegistryError"
    code = 0

    def __init__(self, message: str = None):
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_dict(self):
        """Convert to dictionary for serialization"""
        return {"error": self.kind, "code": self.code, "message": self.message}


class NotAuthorized(RegistryError):
    """Caller is not the registry admin"""

    kind = "NotAuthorized"
    code = 100


class NotOwner(RegistryError):
    """Caller is not the current owner of the referenced dataset"""

    kind = "NotOwner"
    code = 101


class AlreadyVerified(RegistryError):
    """Identity is already present in the identity registry"""

    kind = "AlreadyVerified"
    code = 101


class NotFound(RegistryError):
    """Referenced entity is absent"""

    kind = "NotFound"
    code = 102


class PermissionNotFound(NotFound):
    kind = "PermissionNotFound"
    code = 102


class CategoryNotFound(NotFound):
    kind = "CategoryNotFound"
    code = 101


class DatasetNotFound(NotFound):
    kind = "DatasetNotFound"
    code = 102
