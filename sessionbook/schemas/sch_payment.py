from pydantic import BaseModel

class RefundRetryResponse(BaseModel):
    candidates: int
    accepted: int
