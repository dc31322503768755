from pydantic import BaseModel


class EmailCheckIn(BaseModel):
    email: str | None = None


class EmailCheckOut(BaseModel):
    message: str
