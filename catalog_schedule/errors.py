# catalog_schedule/errors.py

"""Typed failures raised by the allocator, the merge engine and the stores."""


class CatalogError(Exception):
    """Base class for every catalog_schedule failure."""


# ── Allocation / catalog ─────────────────────────────────


class InvalidAreaError(CatalogError):
    """The area is not one of the configured categories."""

    def __init__(self, area: str) -> None:
        self.area = area
        super().__init__(f"Invalid area: {area!r}")


class DuplicateCodeError(CatalogError):
    """The store already holds a product with this code."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Product code already exists: {code}")


class AllocationConflictError(CatalogError):
    """Every allocation attempt collided with a concurrent writer."""

    def __init__(self, area: str, attempts: int) -> None:
        self.area = area
        self.attempts = attempts
        super().__init__(
            f"Could not allocate a code for {area!r} after "
            f"{attempts} attempts; try again"
        )


class ProductValidationError(CatalogError):
    """A product draft is missing a required field or has a bad value."""


class SelectionValidationError(CatalogError):
    """A product selection cannot be turned into a schedule."""


class BlobStoreError(CatalogError):
    """An upload to the blob store failed or used an unsafe key."""


class UploadRejectedError(CatalogError):
    """A general upload has a content type outside the allow-list."""

    def __init__(self, content_type: str) -> None:
        self.content_type = content_type
        super().__init__(f"Unsupported file type: {content_type or 'unknown'}")


class AssetValidationError(CatalogError):
    """A tagged asset entry is missing its tag, filename or URL."""


# ── Document merge ───────────────────────────────────────


class TemplateLoadError(CatalogError):
    """The template is not a readable Word document package."""


class PlaceholderSyntaxError(CatalogError):
    """A placeholder in the template is split, malformed or unbalanced."""

    def __init__(
        self,
        message: str,
        part_name: str = "",
        token: str = "",
    ) -> None:
        self.part_name = part_name
        self.token = token
        prefix = f"Template error in {part_name}: " if part_name else ""
        super().__init__(prefix + message)


class MissingKeyError(CatalogError):
    """A placeholder key has no value in the binding (strict mode)."""

    def __init__(self, key: str, part_name: str = "") -> None:
        self.key = key
        self.part_name = part_name
        where = f" (in {part_name})" if part_name else ""
        super().__init__(f"No value bound for placeholder {key!r}{where}")


class ImageFetchError(CatalogError):
    """A row image could not be fetched; the row renders without it."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch image {url!r}: {reason}")
