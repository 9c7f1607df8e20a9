from pydantic import BaseModel


class PriceQuote(BaseModel):
    symbol: str
    price: float
    as_of: str | None = None
