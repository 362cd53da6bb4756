"""Schemas shared across resource routers"""

from pydantic import BaseModel, Field


class ConnectById(BaseModel):
    id: str = Field(..., min_length=1)


class RelationConnect(BaseModel):
    """Relation payload in connect form: ``{"connect": {"id": "..."}}``"""
    connect: ConnectById


def patch_values(data: BaseModel, nullable=()) -> dict:
    """Fields explicitly sent in a PATCH body.

    An explicit null is kept only for fields listed in ``nullable``; for
    other fields it is ignored.
    """
    values = data.model_dump(exclude_unset=True)
    return {k: v for k, v in values.items() if v is not None or k in nullable}
