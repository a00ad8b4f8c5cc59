from pydantic import BaseModel, Field


class PaymentIntentResponse(BaseModel):
    clientSecret: str = Field(..., description="Client secret used by the browser to confirm the payment")
