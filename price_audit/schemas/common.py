"""
Base model shared by every schema.

Attributes are snake_case in Python; the wire and snapshot form is camelCase
(``supplierName``, ``unitPrice``, ``isPaid``) to stay compatible with the
extraction service's output and existing dashboard snapshots.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class AuditModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
