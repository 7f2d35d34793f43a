# import all models so SQLAlchemy registers them in Base.metadata

from wholesale_cart.data.models.kv_entry import KeyValueEntryModel

__all__ = ["KeyValueEntryModel"]
