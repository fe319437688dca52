import uuid

from pydantic import BaseModel


class OpmcResponse(BaseModel):
    id: uuid.UUID
    rtom: str
    name: str
    region: str
    province: str

    model_config = {"from_attributes": True}
