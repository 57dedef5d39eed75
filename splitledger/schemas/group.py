from pydantic import BaseModel

class GroupCreate(BaseModel):
    name: str

class GroupOut(BaseModel):
    id: int
    name: str
    created_by: int

    class Config:
        from_attributes = True

class GroupMemberOut(BaseModel):
    user_id: int
    group_id: int
    is_active: bool

    class Config:
        from_attributes = True
