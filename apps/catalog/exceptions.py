"""
Catalog errors surfaced through the REST API.

Raised from the services layer and rendered by DRF's exception handler, so
each one carries the HTTP status the dashboard shows the admin.
"""

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError


class VariantMatrixError(ValidationError):
    """The variant list cannot be saved as submitted (blocked before any write)."""
    default_detail = 'Invalid variant matrix.'
    default_code = 'invalid_variants'


class ImageUploadError(APIException):
    """Object storage rejected an upload; nothing in the catalog was changed."""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'Failed to upload image to storage.'
    default_code = 'upload_failed'


class ProductConflictError(APIException):
    """The product was saved by someone else since the form was loaded."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This product was modified by another user. Reload and try again.'
    default_code = 'conflict'
