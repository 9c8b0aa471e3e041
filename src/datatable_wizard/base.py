"""Base model for everything persisted in the configuration blob.

The table renderer reads the blob with camelCase keys, so models serialize
by alias while still accepting snake_case field names in Python code.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
