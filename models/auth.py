from pydantic import BaseModel, Field

class ParentRegister(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=1)

class ParentLogin(BaseModel):
    email: str
    password: str

class ChildLogin(BaseModel):
    family_code: str = Field(..., min_length=4)
    child_id: str
    pin: str
