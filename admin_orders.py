"""
Admin order management: list, filter, sort and mutate orders.

Works entirely through an ``OrderStore`` and its cached order list.
"""

from collections import Counter

from models import ORDER_STATUSES

SORT_KEYS = ("created_at", "price", "distance", "pickup_date", "customer_name", "status")
SEARCH_FIELDS = (
    "id", "customer_name", "customer_email", "customer_phone",
    "start_address", "end_address",
)


class AdminOrders:
    def __init__(self, store):
        self.store = store

    @property
    def orders(self):
        return self.store.orders

    def load(self):
        return self.store.list()

    def filter(self, status=None, search=None, orders=None):
        """Cached orders matching ``status`` and a case-insensitive ``search``."""
        orders = self.orders if orders is None else orders
        if status and status != "all":
            if status not in ORDER_STATUSES:
                raise ValueError("Invalid status: {}".format(status))
            orders = [o for o in orders if o["status"] == status]

        term = (search or "").strip().lower()
        if term:
            orders = [
                o for o in orders
                if any(term in str(o.get(f) or "").lower() for f in SEARCH_FIELDS)
            ]
        return orders

    def sort(self, key="created_at", descending=True, orders=None):
        if key not in SORT_KEYS:
            raise ValueError("Invalid sort key: {}".format(key))
        orders = self.orders if orders is None else orders
        # Missing values sort last regardless of direction
        present = [o for o in orders if o.get(key) is not None]
        missing = [o for o in orders if o.get(key) is None]
        present.sort(key=lambda o: o[key], reverse=descending)
        return present + missing

    def view(self, status=None, search=None, sort="created_at", descending=True):
        return self.sort(sort, descending, orders=self.filter(status, search))

    def detail(self, order_id):
        return self.store.get_by_id(order_id)

    def set_status(self, order_id, status):
        return self.store.update_status(order_id, status)

    def delete(self, order_id):
        return self.store.delete(order_id)

    def stats(self):
        counts = Counter(o["status"] for o in self.orders)
        return {
            "total": len(self.orders),
            "by_status": {s: counts.get(s, 0) for s in ORDER_STATUSES},
            "revenue": sum(o["price"] for o in self.orders if o["status"] in ("confirmed", "completed")),
        }
