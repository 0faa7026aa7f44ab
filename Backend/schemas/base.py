from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base for payloads exchanged in camelCase (``scheduleTimes``, ``notFoundIds``)."""

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
