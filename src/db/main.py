from sqlalchemy.ext.asyncio import create_async_engine
from src.config import Config
from sqlmodel import SQLModel
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

engine = create_async_engine(
    url=Config.DATABASE_URL,
    echo=False,
)


def import_models():
    # Every table must be registered on SQLModel.metadata before create_all.
    from src.auth import models as _auth_models
    from src.customers import models as _customer_models
    from src.categories import models as _category_models
    from src.parts import models as _part_models
    from src.pricing import models as _pricing_models
    from src.inquiries import models as _inquiry_models
    from src.quotations import models as _quotation_models
    from src.orders import models as _order_models
    from src.invoices import models as _invoice_models
    from src.returns import models as _return_models
    from src.challans import models as _challan_models
    from src.receivables import models as _receivable_models


async def init_db():
    import_models()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

# Session factory configured for async operations
async_session_maker = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

async def get_Session():
    async with async_session_maker() as session:
        yield session
