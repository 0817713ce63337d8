from pydantic import BaseModel

class HealthResponse(BaseModel):
    status: str
    database: str

class CsrfTokenResponse(BaseModel):
    success: bool = True
    token: str
    header_name: str
