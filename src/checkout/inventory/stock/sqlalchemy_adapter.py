"""SQL-backed stock store.

Each reservation is one ``UPDATE ... WHERE quantity >= :quantity`` statement,
so the database serializes concurrent checkouts on the same row and a lost
race shows up as zero affected rows.
"""

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, select, update
from sqlalchemy.engine import Engine

from checkout.inventory.stock.port import StockStore, stock_key

metadata = MetaData()

stock_levels = Table(
    "stock_levels",
    metadata,
    Column("product_id", String(64), primary_key=True),
    Column("variant_id", String(64), primary_key=True),
    Column("quantity", Integer, nullable=False, default=0),
)


class SqlAlchemyStockStore(StockStore):
    def __init__(self, engine: Engine | str) -> None:
        self.engine = create_engine(engine) if isinstance(engine, str) else engine

    def create_schema(self) -> None:
        metadata.create_all(self.engine)

    def drop_schema(self) -> None:
        metadata.drop_all(self.engine)

    def _where(self, product_id, variant_id):
        pid, vid = stock_key(product_id, variant_id)
        return (stock_levels.c.product_id == pid) & (stock_levels.c.variant_id == vid)

    def level(self, product_id, variant_id=None):
        with self.engine.connect() as conn:
            quantity = conn.execute(
                select(stock_levels.c.quantity).where(self._where(product_id, variant_id))
            ).scalar_one_or_none()
        return quantity or 0

    def set_level(self, product_id, variant_id, quantity):
        if quantity < 0:
            raise ValueError("Stock level cannot be negative")
        pid, vid = stock_key(product_id, variant_id)
        with self.engine.begin() as conn:
            result = conn.execute(
                update(stock_levels).where(self._where(product_id, variant_id)).values(quantity=quantity)
            )
            if result.rowcount == 0:
                conn.execute(stock_levels.insert().values(product_id=pid, variant_id=vid, quantity=quantity))

    def decrement_if_available(self, product_id, variant_id, quantity):
        with self.engine.begin() as conn:
            result = conn.execute(
                update(stock_levels)
                .where(self._where(product_id, variant_id) & (stock_levels.c.quantity >= quantity))
                .values(quantity=stock_levels.c.quantity - quantity)
            )
            return result.rowcount == 1

    def increment(self, product_id, variant_id, quantity):
        with self.engine.begin() as conn:
            conn.execute(
                update(stock_levels)
                .where(self._where(product_id, variant_id))
                .values(quantity=stock_levels.c.quantity + quantity)
            )
