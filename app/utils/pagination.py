from typing import Tuple, List, Any
from sqlalchemy.orm import Query


def paginate_query(query: Query, skip: int = 0, limit: int = 100) -> Tuple[int, List[Any]]:
    """
    Slice a query for one page.
    Returns a tuple of (total_count, items); the count ignores the query's ordering.
    """
    total = query.order_by(None).count()
    items = query.offset(skip).limit(limit).all()
    return total, items
