import copy
import threading
import uuid
from datetime import date, datetime, time, timezone

from azure.cosmos import exceptions

from sessionbook.models.mod_booking import Booking, BookingStatus

# Monday 10 March 2025, 09:00 UTC
NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


class FakeContainer:
    """
    In-memory stand-in for a Cosmos container.

    Honors ETags on replace_item the way the service does: a stale etag
    raises CosmosAccessConditionFailedError (412). Queries only understand
    an `@id` parameter; anything else returns every document.
    """

    def __init__(self):
        self.items = {}
        self._lock = threading.Lock()
        self._version = 0

    def _stamp(self, body):
        self._version += 1
        doc = copy.deepcopy(body)
        doc["_etag"] = f"etag-{self._version}-{uuid.uuid4().hex}"
        self.items[doc["id"]] = doc
        return copy.deepcopy(doc)

    def read_item(self, item, partition_key):
        with self._lock:
            if item not in self.items:
                raise exceptions.CosmosResourceNotFoundError(status_code=404, message=f"{item} not found")
            return copy.deepcopy(self.items[item])

    def create_item(self, body):
        with self._lock:
            if body["id"] in self.items:
                raise exceptions.CosmosResourceExistsError(status_code=409, message=f"{body['id']} exists")
            return self._stamp(body)

    def replace_item(self, item, body, etag=None, match_condition=None):
        with self._lock:
            if item not in self.items:
                raise exceptions.CosmosResourceNotFoundError(status_code=404, message=f"{item} not found")
            if etag is not None and self.items[item]["_etag"] != etag:
                raise exceptions.CosmosAccessConditionFailedError(status_code=412, message="etag mismatch")
            return self._stamp(body)

    def upsert_item(self, body):
        with self._lock:
            return self._stamp(body)

    def delete_item(self, item, partition_key):
        with self._lock:
            if item not in self.items:
                raise exceptions.CosmosResourceNotFoundError(status_code=404, message=f"{item} not found")
            del self.items[item]

    def query_items(self, query, parameters=None, enable_cross_partition_query=None):
        with self._lock:
            wanted = {p["name"]: p["value"] for p in parameters or []}
            docs = list(self.items.values())
            if "@id" in wanted:
                docs = [doc for doc in docs if doc["id"] == wanted["@id"]]
            return [copy.deepcopy(doc) for doc in docs]


def make_booking(**overrides) -> Booking:
    fields = dict(
        id=str(uuid.uuid4()),
        booking_number="BK25030001",
        client_id="client-1",
        trainer_id="trainer-1",
        package_id="pkg-1",
        session_date=date(2025, 3, 12),
        session_time=time(10, 0),
        duration_minutes=60,
        status=BookingStatus.CONFIRMED,
        amount=100.0,
        remaining_sessions=10,
        payment_intent_id="pi_123",
    )
    fields.update(overrides)
    return Booking(**fields)
