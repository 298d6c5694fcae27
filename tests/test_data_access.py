"""
Data access orchestrator tests: query building, envelope normalization,
hooks, transformers and mutation errors.

Run:
    python -m pytest tests/test_data_access.py -v
"""

import pytest

from entity_admin.exceptions import FetchError, MutationError
from entity_admin.schemas.entity import EntityConfiguration, EntityEndpoints, EntityHooks, EntityTransformers
from entity_admin.schemas.table_state import ListParams, SortSpec
from entity_admin.services.data_access import (
    DataAccessOrchestrator,
    build_list_query,
    envelope_keys,
    normalize_list_response,
)


def make_config(slug="users", name="User", hooks=None, transformers=None, **kwargs):
    return EntityConfiguration(
        name=name,
        slug=slug,
        endpoints=EntityEndpoints(base=f"/admin/{slug}"),
        hooks=hooks or EntityHooks(),
        transformers=transformers or EntityTransformers(),
        **kwargs,
    )


@pytest.fixture
def orchestrator(api_client):
    return DataAccessOrchestrator(api_client)


# ═══════════════════════════════════════════════════════════════════════════
# Query building
# ═══════════════════════════════════════════════════════════════════════════


class TestBuildListQuery:

    def test_minimal(self):
        assert build_list_query(ListParams(page=2, limit=10)) == [("page", "2"), ("limit", "10")]

    def test_full(self):
        params = ListParams(
            page=1,
            limit=25,
            search="ada",
            sorting=[SortSpec(field="email", direction="desc"), SortSpec(field="id")],
            filters={"role": ["ADMIN", "HOST"], "active": True, "status": "", "tag": None, "empty": []},
        )
        assert build_list_query(params) == [
            ("page", "1"),
            ("limit", "25"),
            ("search", "ada"),
            ("sortBy", "email"),
            ("sortOrder", "desc"),
            ("filter[role]", "ADMIN,HOST"),
            ("filter[active]", "true"),
        ]


# ═══════════════════════════════════════════════════════════════════════════
# Envelope normalization
# ═══════════════════════════════════════════════════════════════════════════


class TestNormalizeListResponse:

    def test_envelope_keys(self):
        config = make_config(slug="person", name="Person", plural_name="People")
        assert envelope_keys(config) == ["data", "person", "people", "persons"]

    def test_standard_envelope(self):
        rows = [{"id": str(i)} for i in range(7)]
        result = normalize_list_response(make_config(), {"data": rows, "total": 7}, limit=10)
        assert len(result.data) == 7
        assert result.total == 7
        assert result.total_pages == 1

    def test_slug_keyed_envelope_without_totals(self):
        rows = [{"id": "1"}, {"id": "2"}, {"id": "3"}]
        result = normalize_list_response(make_config(), {"users": rows}, limit=2)
        assert result.total == 3
        assert result.total_pages == 2

    def test_nested_pagination(self):
        payload = {"items": [], "data": [{"id": "1"}], "pagination": {"total": 40, "totalPages": 4}}
        result = normalize_list_response(make_config(), payload, limit=10)
        assert result.total == 40
        assert result.total_pages == 4

    def test_first_non_empty_array_wins(self):
        payload = {"data": [], "users": [{"id": "9"}]}
        result = normalize_list_response(make_config(), payload, limit=10)
        assert result.data == [{"id": "9"}]

    def test_bare_array(self):
        result = normalize_list_response(make_config(), [{"id": "1"}, "junk"], limit=10)
        assert result.data == [{"id": "1"}]
        assert result.total == 1

    @pytest.mark.parametrize("payload", [None, "", {}, {"data": "nope"}, 17])
    def test_unusable_payload_is_empty(self, payload):
        result = normalize_list_response(make_config(), payload, limit=10)
        assert result.data == []
        assert result.total == 0
        assert result.total_pages == 1

    def test_result_serializes_with_wire_names(self):
        result = normalize_list_response(make_config(), {"data": [{"id": "1"}]}, limit=10)
        assert result.model_dump(by_alias=True, exclude={"error"}) == {
            "data": [{"id": "1"}], "total": 1, "totalPages": 1,
        }


# ═══════════════════════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════════════════════


@pytest.mark.remote
class TestReads:

    async def test_list_sends_query(self, orchestrator, backend):
        params = ListParams(page=1, limit=2, sorting=[SortSpec(field="firstName")], filters={"status": "ACTIVE"})
        result = await orchestrator.list(make_config(), params)

        assert [r["firstName"] for r in result.data] == ["Ada", "Grace"]
        assert result.total == 2
        query = backend.calls("GET", "/admin/users")[0]["query"]
        assert ("filter[status]", "ACTIVE") in query
        assert ("sortBy", "firstName") in query

    async def test_list_custom_envelope(self, orchestrator, backend):
        backend.envelopes["users"] = lambda rows: {"users": rows, "pagination": {"total": 30}}
        result = await orchestrator.list(make_config(), ListParams(limit=10))
        assert len(result.data) == 3
        assert result.total == 30
        assert result.total_pages == 3

    async def test_list_transformer(self, orchestrator):
        config = make_config(transformers=EntityTransformers(
            list=lambda rows: [{**r, "fullName": f"{r['firstName']} {r['lastName']}"} for r in rows],
        ))
        result = await orchestrator.list(config, ListParams())
        assert result.data[0]["fullName"] == "Ada Lovelace"

    async def test_list_failure(self, orchestrator, backend):
        backend.fail("GET", "/admin/users", 500)
        with pytest.raises(FetchError) as exc:
            await orchestrator.list(make_config(), ListParams())
        assert exc.value.message == "Failed to load data"
        assert exc.value.status_code == 500

    async def test_detail(self, orchestrator):
        config = make_config(transformers=EntityTransformers(detail=lambda r: {**r, "email": r["email"].upper()}))
        record = await orchestrator.detail(config, "2")
        assert record["email"] == "GRACE@EXAMPLE.COM"

    async def test_detail_not_found_uses_body_message(self, orchestrator):
        with pytest.raises(FetchError) as exc:
            await orchestrator.detail(make_config(), "404")
        assert exc.value.message == "Record not found"
        assert exc.value.status_code == 404


# ═══════════════════════════════════════════════════════════════════════════
# Mutations
# ═══════════════════════════════════════════════════════════════════════════


@pytest.mark.remote
class TestMutations:

    async def test_create_hook_order(self, orchestrator, backend):
        events = []

        def before_create(data):
            events.append(("before", dict(data)))
            return {**data, "role": "USER"}

        async def after_create(record):
            events.append(("after", record["id"]))

        config = make_config(
            hooks=EntityHooks(before_create=before_create, after_create=after_create),
            transformers=EntityTransformers(create=lambda d: {**d, "email": d["email"].lower()}),
        )
        created = await orchestrator.create(config, {"firstName": "Linus", "email": "LINUS@EXAMPLE.COM"})

        assert created["role"] == "USER"
        assert created["email"] == "linus@example.com"
        assert events == [("before", {"firstName": "Linus", "email": "LINUS@EXAMPLE.COM"}), ("after", "4")]
        assert backend.records["users"]["4"]["firstName"] == "Linus"

    async def test_hook_returning_none_keeps_payload(self, orchestrator, backend):
        config = make_config(hooks=EntityHooks(before_create=lambda data: None))
        created = await orchestrator.create(config, {"firstName": "Kept"})
        assert created["firstName"] == "Kept"

    async def test_update_receives_id(self, orchestrator, backend):
        seen = []
        config = make_config(hooks=EntityHooks(
            before_update=lambda record_id, data: seen.append(record_id) or {**data, "status": "SUSPENDED"},
        ))
        updated = await orchestrator.update(config, 1, {"lastName": "King"})
        assert seen == ["1"]
        assert updated["lastName"] == "King"
        assert backend.records["users"]["1"]["status"] == "SUSPENDED"

    async def test_update_transformer(self, orchestrator, backend):
        config = make_config(transformers=EntityTransformers(
            update=lambda d: {k: v for k, v in d.items() if k != "password"},
        ))
        await orchestrator.update(config, "2", {"lastName": "Murray", "password": "secret"})
        assert backend.records["users"]["2"]["lastName"] == "Murray"
        assert "password" not in backend.records["users"]["2"]

    async def test_delete(self, orchestrator, backend):
        after = []
        config = make_config(hooks=EntityHooks(after_delete=after.append))
        assert await orchestrator.delete(config, "3") is True
        assert "3" not in backend.records["users"]
        assert after == ["3"]

    async def test_delete_veto_sends_no_request(self, orchestrator, backend):
        after = []
        config = make_config(hooks=EntityHooks(before_delete=lambda record_id: False, after_delete=after.append))
        assert await orchestrator.delete(config, "3") is False
        assert backend.calls("DELETE") == []
        assert after == []
        assert "3" in backend.records["users"]

    async def test_async_veto(self, orchestrator, backend):
        async def confirm(record_id):
            return False

        config = make_config(hooks=EntityHooks(before_delete=confirm))
        assert await orchestrator.delete(config, "1") is False
        assert backend.calls("DELETE") == []

    async def test_error_message_from_body(self, orchestrator, backend):
        reported = []
        backend.fail("POST", "/admin/users", 422, {"message": ["Email already taken"], "errors": {"email": "taken"}})
        config = make_config(hooks=EntityHooks(on_error=lambda error, action: reported.append((error.message, action))))

        with pytest.raises(MutationError) as exc:
            await orchestrator.create(config, {"email": "ada@example.com"})

        assert exc.value.message == "Email already taken"
        assert exc.value.action == "create"
        assert exc.value.status_code == 422
        assert reported == [("Email already taken", "create")]

    @pytest.mark.parametrize("action,method,path", [
        ("update", "PUT", "/admin/users/1"),
        ("delete", "DELETE", "/admin/users/1"),
    ])
    async def test_error_message_fallback(self, orchestrator, backend, action, method, path):
        backend.fail(method, path, 500)
        with pytest.raises(MutationError) as exc:
            if action == "update":
                await orchestrator.update(make_config(), "1", {"lastName": "x"})
            else:
                await orchestrator.delete(make_config(), "1")
        assert exc.value.message == f"Failed to {action} User"

    async def test_failing_hook_is_mutation_error(self, orchestrator, backend):
        def before_create(data):
            raise RuntimeError("Quota exceeded")

        config = make_config(hooks=EntityHooks(before_create=before_create))
        with pytest.raises(MutationError) as exc:
            await orchestrator.create(config, {})
        assert exc.value.message == "Quota exceeded"
        assert backend.calls("POST") == []

    async def test_broken_on_error_does_not_mask_failure(self, orchestrator, backend):
        def on_error(error, action):
            raise RuntimeError("reporter down")

        backend.fail("POST", "/admin/users", 500)
        with pytest.raises(MutationError):
            await orchestrator.create(make_config(hooks=EntityHooks(on_error=on_error)), {})

    async def test_form_round_trip(self, orchestrator):
        """create transform -> server echo -> detail transform restores the form value."""
        config = make_config(transformers=EntityTransformers(
            create=lambda d: {**d, "tags": ",".join(d["tags"])},
            detail=lambda r: {**r, "tags": r["tags"].split(",")},
        ))
        created = await orchestrator.create(config, {"firstName": "Tag", "tags": ["a", "b"]})
        assert created["tags"] == "a,b"
        record = await orchestrator.detail(config, created["id"])
        assert record["tags"] == ["a", "b"]
