from __future__ import annotations

from fastapi.testclient import TestClient

from nest.registry import MemoryMemberRegistry
from nest.store import MemoryRelationshipStore
from tests.factories import FAMILY


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


class TestMembers:
    def test_list_members_includes_status_and_actions(self, client: TestClient) -> None:
        body = client.get(f"/families/{FAMILY}/members").json()

        assert body["total"] == 5
        first = body["results"][0]
        assert first["id"] == "A"
        assert first["status"] == "no_account"
        assert first["status_label"] == "Not Invited"
        assert "resend_invitation" not in first["actions"]

    def test_create_member_with_email_is_pending(self, client: TestClient) -> None:
        resp = client.post(
            f"/families/{FAMILY}/members",
            json={"name": "Johanna", "nickname": "Oma", "relationship": "Grandma", "contact_email": "oma@example.com"},
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["display_name"] == "Oma"
        assert body["label"] == "Oma (Grandma)"
        assert body["status"] == "pending_invitation"
        assert "resend_invitation" in body["actions"]

    def test_create_member_requires_name(self, client: TestClient) -> None:
        resp = client.post(f"/families/{FAMILY}/members", json={"name": "   "})
        assert resp.status_code == 400

    def test_member_detail_lists_related(self, client: TestClient, store: MemoryRelationshipStore) -> None:
        store.add_edge(FAMILY, "A", "B", "spouse")
        store.add_edge(FAMILY, "C", "A", "child")

        body = client.get(f"/families/{FAMILY}/members/A").json()

        assert [(r["id"], r["label"]) for r in body["related"]] == [("B", "spouse"), ("C", "child")]

    def test_unknown_member_is_404(self, client: TestClient) -> None:
        assert client.get(f"/families/{FAMILY}/members/nobody").status_code == 404
        assert client.delete(f"/families/{FAMILY}/members/nobody").status_code == 404

    def test_update_member(self, client: TestClient) -> None:
        resp = client.put(f"/families/{FAMILY}/members/A", json={"name": "Anna", "nickname": "Annie"})
        assert resp.status_code == 200
        assert resp.json()["display_name"] == "Annie"

    def test_update_unknown_member_is_404(self, client: TestClient) -> None:
        resp = client.put(f"/families/{FAMILY}/members/nobody", json={"name": "X"})
        assert resp.status_code == 404
        assert resp.json()["detail"]["error"] == "not_found"

    def test_deleted_member_drops_out_of_tree(
        self, client: TestClient, registry: MemoryMemberRegistry, store: MemoryRelationshipStore
    ) -> None:
        store.add_edge(FAMILY, "A", "B", "spouse")
        assert client.delete(f"/families/{FAMILY}/members/B").json() == {"id": "B", "removed": True}

        roots = client.get(f"/families/{FAMILY}/tree").json()["roots"]
        assert [r["member"]["id"] for r in roots] == ["A", "C", "D", "E"]
        assert roots[0]["spouse"] is None

    def test_removed_spouse_no_longer_reads_back(
        self, client: TestClient, store: MemoryRelationshipStore
    ) -> None:
        store.add_edge(FAMILY, "A", "B", "spouse")
        client.delete(f"/families/{FAMILY}/members/B")

        body = client.get(f"/families/{FAMILY}/members/A/relationships").json()
        assert body["spouse_id"] is None

        resp = client.put(f"/families/{FAMILY}/members/A/relationships", json={"spouse_id": "C"})
        assert resp.json() == {"ok": True}

    def test_member_payload_has_initials_and_skips_blank_fields(self, client: TestClient) -> None:
        resp = client.post(
            f"/families/{FAMILY}/members",
            json={"name": "anne marie smith", "nickname": "  ", "contact_email": ""},
        )

        body = resp.json()
        assert body["initials"] == "AM"
        assert body["name"] == "anne marie smith"
        assert "nickname" not in body
        assert "contact_email" not in body


class TestRelationships:
    def test_add_and_remove_spouse(self, client: TestClient, store: MemoryRelationshipStore) -> None:
        resp = client.post(
            f"/families/{FAMILY}/relationships",
            json={"member_id": "A", "related_id": "B", "relationship_type": "spouse"},
        )
        assert resp.status_code == 201
        assert len(store.edges(FAMILY)) == 2

        resp = client.delete(
            f"/families/{FAMILY}/relationships",
            params={"member_id": "B", "related_id": "A", "relationship_type": "spouse"},
        )
        assert resp.json() == {"ok": True, "removed": True}
        assert store.edges(FAMILY) == []

    def test_add_rejects_unknown_type(self, client: TestClient) -> None:
        resp = client.post(
            f"/families/{FAMILY}/relationships",
            json={"member_id": "A", "related_id": "B", "relationship_type": "sibling"},
        )
        assert resp.status_code == 422

    def test_add_self_reference_is_400(self, client: TestClient) -> None:
        resp = client.post(
            f"/families/{FAMILY}/relationships",
            json={"member_id": "A", "related_id": "A", "relationship_type": "child"},
        )
        assert resp.status_code == 400
        assert resp.json()["detail"]["error"] == "invalid_self_reference"

    def test_put_replaces_and_get_reads_back(self, client: TestClient) -> None:
        resp = client.put(
            f"/families/{FAMILY}/members/A/relationships",
            json={"spouse_id": "B", "parent_ids": ["C"], "child_ids": ["D"]},
        )
        assert resp.json() == {"ok": True}

        body = client.get(f"/families/{FAMILY}/members/A/relationships").json()
        assert body == {"member_id": "A", "spouse_id": "B", "parent_ids": ["C"], "child_ids": ["D"]}

    def test_put_with_unknown_id_names_role(self, client: TestClient) -> None:
        resp = client.put(
            f"/families/{FAMILY}/members/A/relationships",
            json={"child_ids": ["ghost"]},
        )
        assert resp.status_code == 404
        detail = resp.json()["detail"]
        assert detail["member_id"] == "ghost"
        assert detail["role"] == "child"

    def test_put_spouse_conflict_is_409(self, client: TestClient, store: MemoryRelationshipStore) -> None:
        store.add_edge(FAMILY, "B", "C", "spouse")
        resp = client.put(f"/families/{FAMILY}/members/A/relationships", json={"spouse_id": "B"})
        assert resp.status_code == 409


class TestTree:
    def test_tree_pairs_spouses_and_nests_children(self, client: TestClient, store: MemoryRelationshipStore) -> None:
        store.add_edge(FAMILY, "A", "B", "spouse")
        store.add_edge(FAMILY, "C", "A", "child")
        store.add_edge(FAMILY, "C", "B", "child")

        body = client.get(f"/families/{FAMILY}/tree", params={"selected": "C"}).json()

        assert body["total_members"] == 5
        assert body["selected"] == "C"
        roots = body["roots"]
        assert [r["member"]["id"] for r in roots] == ["A", "D", "E"]
        couple = roots[0]
        assert couple["spouse"]["id"] == "B"
        assert couple["selected"] is False
        assert couple["children"][0]["member"]["id"] == "C"
        assert couple["children"][0]["selected"] is True
        assert couple["children"][0]["member"]["status"] == "no_account"

    def test_empty_family_has_no_roots(self, client: TestClient) -> None:
        body = client.get("/families/empty/tree").json()
        assert body["roots"] == []
        assert body["total_members"] == 0

    def test_selecting_a_spouse_marks_the_couple_node(self, client: TestClient, store: MemoryRelationshipStore) -> None:
        store.add_edge(FAMILY, "A", "B", "spouse")

        body = client.get(f"/families/{FAMILY}/tree", params={"selected": "B"}).json()

        assert body["selected"] == "B"
        assert body["roots"][0]["member"]["id"] == "A"
        assert body["roots"][0]["selected"] is True
        assert [r["selected"] for r in body["roots"][1:]] == [False, False, False]

    def test_unknown_selection_is_cleared(self, client: TestClient) -> None:
        body = client.get(f"/families/{FAMILY}/tree", params={"selected": "nobody"}).json()

        assert body["selected"] is None
        assert not any(r["selected"] for r in body["roots"])

    def test_deep_line_of_descent_renders(
        self, client: TestClient, registry: MemoryMemberRegistry, store: MemoryRelationshipStore
    ) -> None:
        ids = [f"g{i}" for i in range(150)]
        for mid in ids:
            registry.add_member("deep", name=mid, member_id=mid)
        for parent_id, child_id in zip(ids, ids[1:]):
            store.add_edge("deep", child_id, parent_id, "child")

        body = client.get("/families/deep/tree", params={"selected": "g149"}).json()

        node = body["roots"][0]
        depth = 0
        while node["children"]:
            node = node["children"][0]
            depth += 1
        assert depth == 149
        assert node["member"]["id"] == "g149"
        assert node["selected"] is True
