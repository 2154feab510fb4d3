# ==============================================================================
# MONGO TABLE TESTS
# ==============================================================================
# Filter building, scan resume queries, guarded puts and transactions,
# run against an in-process stand-in for the motor collection
# ==============================================================================

from types import SimpleNamespace

import pytest
from pymongo.errors import DuplicateKeyError

from product_api.database.keyvalue import (
    Delete,
    MongoKeyValueTable,
    Put,
    TransactionCanceledError,
    Update,
    make_key,
)
from product_api.database.keyvalue.mongo_table import (
    PARTITION_GUARD,
    _filter,
    _update_document,
)
from product_api.database.keyvalue.table import CONDITION_FAILED


def matches(document: dict, query: dict) -> bool:
    for name, condition in query.items():
        if name == "$or":
            if not any(matches(document, branch) for branch in condition):
                return False
        elif isinstance(condition, dict) and "$gt" in condition:
            if name not in document or not document[name] > condition["$gt"]:
                return False
        elif document.get(name) != condition:
            return False
    return True


def project(document: dict, projection) -> dict:
    hidden = {name for name, shown in (projection or {}).items() if not shown}
    return {k: v for k, v in document.items() if k not in hidden}


class FakeCursor:
    def __init__(self, documents, projection):
        self._documents = documents
        self._projection = projection
        self._limit = None

    def sort(self, *args):
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        ordered = sorted(self._documents, key=lambda d: (d["pk"], d["sk"]))
        if self._limit is not None:
            ordered = ordered[:self._limit]
        return [project(d, self._projection) for d in ordered]


class FakeCollection:
    """Enough of a motor collection for the table's reads and writes."""

    def __init__(self):
        self.documents = []
        self.queries = []

    def _find(self, query):
        return [d for d in self.documents if matches(d, query)]

    def find(self, query, projection=None):
        self.queries.append(query)
        return FakeCursor(self._find(query), projection)

    async def find_one(self, query, projection=None, session=None):
        found = self._find(query)
        return project(found[0], projection) if found else None

    async def insert_one(self, document, session=None):
        for existing in self.documents:
            same_key = (existing["pk"], existing["sk"]) == (document["pk"], document["sk"])
            same_guard = (
                PARTITION_GUARD in document
                and existing.get(PARTITION_GUARD) == document[PARTITION_GUARD]
            )
            if same_key or same_guard:
                raise DuplicateKeyError("E11000 duplicate key error")
        self.documents.append(dict(document))

    async def replace_one(self, query, document, upsert=False, session=None):
        self.documents = [d for d in self.documents if not matches(d, query)]
        self.documents.append(dict(document))

    async def update_one(self, query, update, session=None):
        found = self._find(query)
        for document in found[:1]:
            document.update(update.get("$set", {}))
            for name in update.get("$unset", {}):
                document.pop(name, None)
        return SimpleNamespace(matched_count=len(found[:1]))

    async def delete_one(self, query, session=None):
        found = self._find(query)[:1]
        for document in found:
            self.documents.remove(document)
        return SimpleNamespace(deleted_count=len(found))


class FakeSession:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def with_transaction(self, callback):
        await callback(self)


class FakeClient:
    async def start_session(self):
        return FakeSession()


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def table(collection):
    table = MongoKeyValueTable(
        connection_url="mongodb://localhost:27017",
        database_name="test",
        table_name="items",
    )
    table._client = FakeClient()
    table._collection = collection
    return table


class TestDocumentBuilders:
    """Tests for filter and update document construction."""

    def test_filter_on_key(self):
        key = make_key("USER#1", "PROFILE#1")
        assert _filter(key) == {"pk": "USER#1", "sk": "PROFILE#1"}

    def test_filter_with_expected_values(self):
        key = make_key("PRODUCT#1", "DETAILS#1")

        query = _filter(key, {"userId": "u-1", "category": None})

        assert query == {
            "pk": "PRODUCT#1",
            "sk": "DETAILS#1",
            "userId": "u-1",
            "category": None,
        }

    def test_update_document(self):
        document = _update_document({"name": "Lamp"}, ["category"])
        assert document == {"$set": {"name": "Lamp"}, "$unset": {"category": ""}}

    def test_update_document_without_removals(self):
        assert _update_document({"stock": 3}, ()) == {"$set": {"stock": 3}}


class TestScan:
    """Tests for scan paging."""

    @pytest.mark.asyncio
    async def test_resume_after_start_key(self, table, collection):
        for pk, sk in [("A#1", "X"), ("A#1", "Y"), ("B#1", "X"), ("C#1", "X")]:
            collection.documents.append({"pk": pk, "sk": sk, "_id": object()})

        page = await table.scan(limit=2, exclusive_start_key=make_key("A#1", "X"))

        assert collection.queries[-1] == {
            "$or": [
                {"pk": {"$gt": "A#1"}},
                {"pk": "A#1", "sk": {"$gt": "X"}},
            ]
        }
        assert [(i["pk"], i["sk"]) for i in page.items] == [("A#1", "Y"), ("B#1", "X")]
        assert page.last_evaluated_key == make_key("B#1", "X")
        assert all("_id" not in item for item in page.items)

    @pytest.mark.asyncio
    async def test_last_step_has_no_key(self, table, collection):
        collection.documents.append({"pk": "A#1", "sk": "X"})

        page = await table.scan(limit=5)

        assert collection.queries[-1] == {}
        assert page.last_evaluated_key is None

    @pytest.mark.asyncio
    async def test_predicate_filters_examined_items(self, table, collection):
        collection.documents.extend([{"pk": "A#1", "sk": "X"}, {"pk": "B#1", "sk": "X"}])

        page = await table.scan(limit=5, predicate=lambda item: item["pk"] == "B#1")

        assert [i["pk"] for i in page.items] == ["B#1"]


class TestGuardedWrites:
    """Tests for conditional puts and transactions."""

    @pytest.mark.asyncio
    async def test_put_taken_key(self, table):
        item = {"pk": "USER#1", "sk": "PROFILE#1"}

        assert await table._put(Put(item, must_not_exist=True)) is True
        assert await table._put(Put(item, must_not_exist=True)) is False

    @pytest.mark.asyncio
    async def test_unique_partition_guard(self, table, collection):
        partition = "EMAIL#a@example.com"
        first = Put({"pk": partition, "sk": "USER#1"}, must_not_exist=True, unique_partition=True)
        second = Put({"pk": partition, "sk": "USER#2"}, must_not_exist=True, unique_partition=True)

        assert await table._put(first) is True
        assert await table._put(second) is False
        assert collection.documents[0][PARTITION_GUARD] == "EMAIL#a@example.com"

        stored = await table.get_item(make_key("EMAIL#a@example.com", "USER#1"))
        assert PARTITION_GUARD not in stored

    @pytest.mark.asyncio
    async def test_transact_write_applies_all(self, table, collection):
        collection.documents.append({"pk": "PRODUCT#1", "sk": "DETAILS#1", "category": "old"})

        await table.transact_write([
            Update(
                make_key("PRODUCT#1", "DETAILS#1"),
                set_fields={"category": "new"},
                expected={"category": "old"},
            ),
            Put({"pk": "CATEGORY#new", "sk": "PRODUCT#1"}, must_not_exist=True),
        ])

        item = await table.get_item(make_key("PRODUCT#1", "DETAILS#1"))
        assert item["category"] == "new"
        assert await table.get_item(make_key("CATEGORY#new", "PRODUCT#1")) is not None

    @pytest.mark.asyncio
    async def test_transact_write_reports_failed_condition(self, table, collection):
        collection.documents.append({"pk": "PRODUCT#1", "sk": "DETAILS#1", "category": "moved"})

        with pytest.raises(TransactionCanceledError) as exc_info:
            await table.transact_write([
                Put({"pk": "CATEGORY#new", "sk": "PRODUCT#1"}, must_not_exist=True),
                Update(
                    make_key("PRODUCT#1", "DETAILS#1"),
                    set_fields={"category": "new"},
                    expected={"category": "old"},
                ),
            ])

        assert exc_info.value.reasons == [None, CONDITION_FAILED]

    @pytest.mark.asyncio
    async def test_guarded_delete_of_missing_item(self, table):
        with pytest.raises(TransactionCanceledError) as exc_info:
            await table.transact_write([
                Delete(make_key("PRODUCT#9", "DETAILS#9"), expected={"userId": "u-1"}),
            ])

        assert exc_info.value.reasons == [CONDITION_FAILED]
