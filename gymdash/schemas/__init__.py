from gymdash.schemas.base import ApiModel, Resource
from gymdash.schemas.credential import Credential, Role
from gymdash.schemas.common import BulkOperationResult
