from pydantic import BaseModel, ConfigDict

from backend.app.db.models.core_types import ArticleCategory, SerialNumberStatus


class ArticleStockRead(BaseModel):
    id: int
    sku: str
    name: str
    category: ArticleCategory
    unit: str

    current_stock: int
    incoming_stock: int  # READ ONLY - maintained by the ledger, never written here
    min_stock_level: int

    model_config = ConfigDict(from_attributes=True)


class SerialNumberRead(BaseModel):
    id: int
    serial_no: str
    status: SerialNumberStatus
    is_used: bool

    model_config = ConfigDict(from_attributes=True)


class StockArticleRead(ArticleStockRead):
    serial_numbers: list[SerialNumberRead] = []


class StockDriftRead(BaseModel):
    article_id: int
    sku: str
    current_stock: int
    ledger_stock: int
    incoming_stock: int
    expected_incoming: int

    model_config = ConfigDict(from_attributes=True)
