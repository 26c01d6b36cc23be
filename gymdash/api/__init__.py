"""
Clientes de la API REST externa y de servicios de terceros.
"""

from gymdash.api.client import ApiClient
from gymdash.api.auth import AuthService
from gymdash.api.upload import ImageUploadService
