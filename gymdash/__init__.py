"""
gymdash - Sincronización de recursos autenticados para el dashboard del gimnasio.
"""

__version__ = "0.1.0"
