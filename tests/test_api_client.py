"""
Tests for the CWE REST API client and response helpers.
"""

import logging

import pytest
from conftest import TEST_BASE_URL, FakeSession, weakness

from cwe_toolkit.api.client import CWEAPIClient
from cwe_toolkit.api.responses import (
    extract_entities,
    extract_entity,
    extract_id_list,
    get_field,
)
from cwe_toolkit.shared.exceptions import (
    APIStatusError,
    DecodeError,
    EmptyInputError,
    InvalidIDError,
    MissingFieldError,
    RetriesExceededError,
)
from cwe_toolkit.shared.models import ClientConfig


class TestVersion:
    """Tests for the version endpoint."""

    def test_version(self, fake_session: FakeSession, api_client: CWEAPIClient) -> None:
        """Test the version string is returned."""
        fake_session.add_json("/cwe/version", {"version": "4.12"})
        info = api_client.get_version()
        assert info.version == "4.12"
        assert info.release_date is None

    def test_upstream_field_names(
        self, fake_session: FakeSession, api_client: CWEAPIClient
    ) -> None:
        """Test the content version and date field spellings."""
        fake_session.add_json(
            "/cwe/version", {"ContentVersion": "4.14", "ContentDate": "2024-02-29"}
        )
        info = api_client.get_version()
        assert info.version == "4.14"
        assert info.release_date == "2024-02-29"

    def test_server_error_exhausts_retries(
        self, fake_session: FakeSession, api_client: CWEAPIClient
    ) -> None:
        """Test a 500 is retried max_retries + 1 times then surfaced."""
        fake_session.add_json("/cwe/version", {}, status=500)
        with pytest.raises(RetriesExceededError):
            api_client.get_version()
        assert len(fake_session.calls) == api_client.http_client.max_retries + 1

    def test_missing_version(self, fake_session: FakeSession, api_client: CWEAPIClient) -> None:
        """Test a payload without a version."""
        fake_session.add_json("/cwe/version", {"release_date": "2024-01-01"})
        with pytest.raises(MissingFieldError):
            api_client.get_version()

    def test_invalid_json(self, fake_session: FakeSession, api_client: CWEAPIClient) -> None:
        """Test an unparseable body raises DecodeError."""
        fake_session.add("/cwe/version", b"<html>maintenance</html>")
        with pytest.raises(DecodeError):
            api_client.get_version()

    def test_not_found(self, fake_session: FakeSession, api_client: CWEAPIClient) -> None:
        """Test a non-2xx status below 500 raises APIStatusError."""
        with pytest.raises(APIStatusError) as exc_info:
            api_client.get_version()
        assert exc_info.value.status == 404
        assert len(fake_session.calls) == 1


class TestEntities:
    """Tests for the entity endpoints."""

    def test_weakness_bare_object(
        self, fake_session: FakeSession, api_client: CWEAPIClient
    ) -> None:
        """Test a bare entity object with a numeric path ID."""
        fake_session.add_json("/cwe/weakness/89", {"id": "CWE-89", "name": "SQL Injection"})
        entity = api_client.get_weakness("CWE-89")
        assert entity["id"] == "CWE-89"
        assert entity["name"] == "SQL Injection"
        assert fake_session.calls[0]["headers"]["Accept"] == "application/json"

    def test_weakness_envelope(
        self, fake_session: FakeSession, api_client: CWEAPIClient
    ) -> None:
        """Test an envelope array is unwrapped and the ID canonicalized."""
        fake_session.add_json("/cwe/weakness/79", {"Weaknesses": [weakness(79, "XSS")]})
        entity = api_client.get_weakness(" cwe-079 ")
        assert entity["id"] == "CWE-79"
        assert entity["Name"] == "XSS"

    def test_category_and_view(self, fake_session: FakeSession, api_client: CWEAPIClient) -> None:
        """Test category and view endpoints use their own envelopes."""
        fake_session.add_json("/cwe/category/19", {"Categories": [{"ID": 19, "Name": "Data"}]})
        fake_session.add_json("/cwe/view/1000", {"Views": [{"ID": "1000", "Name": "Research"}]})
        assert api_client.get_category("19")["id"] == "CWE-19"
        assert api_client.get_view("CWE-1000")["id"] == "CWE-1000"

    def test_missing_id(self, fake_session: FakeSession, api_client: CWEAPIClient) -> None:
        """Test a single entity without an ID raises MissingFieldError."""
        fake_session.add_json("/cwe/weakness/89", {"name": "SQL Injection"})
        with pytest.raises(MissingFieldError):
            api_client.get_weakness("89")

    def test_invalid_id_rejected_before_request(
        self, fake_session: FakeSession, api_client: CWEAPIClient
    ) -> None:
        """Test malformed IDs never reach the network."""
        with pytest.raises(InvalidIDError):
            api_client.get_weakness("SQLi")
        assert fake_session.calls == []

    def test_get_cwes(self, fake_session: FakeSession, api_client: CWEAPIClient) -> None:
        """Test the multi-entity endpoint joins numeric IDs."""
        fake_session.add_json(
            "/cwe/79,89",
            {"CWE-79": weakness(79, "XSS"), "CWE-89": weakness(89, "SQL Injection")},
        )
        data = api_client.get_cwes(["CWE-79", "89"])
        assert set(data) == {"CWE-79", "CWE-89"}

    def test_get_cwes_empty(self, api_client: CWEAPIClient) -> None:
        """Test an empty ID list is rejected."""
        with pytest.raises(EmptyInputError):
            api_client.get_cwes([])


class TestRelations:
    """Tests for the relation endpoints."""

    def test_children_with_view(
        self, fake_session: FakeSession, api_client: CWEAPIClient
    ) -> None:
        """Test mixed ID shapes are canonicalized and the view is scoped."""
        fake_session.add_json("/cwe/20/children?view=1000", ["79", 89, {"ID": "CWE-787"}])
        assert api_client.get_children("CWE-20", "CWE-1000") == ["CWE-79", "CWE-89", "CWE-787"]

    @pytest.mark.parametrize("relation", ["parents", "ancestors", "descendants"])
    def test_other_relations(
        self, fake_session: FakeSession, api_client: CWEAPIClient, relation: str
    ) -> None:
        """Test the remaining relation endpoints without a view."""
        fake_session.add_json(f"/cwe/79/{relation}", ["20"])
        method = getattr(api_client, f"get_{relation}")
        assert method("79") == ["CWE-20"]

    def test_invalid_relation_payload(
        self, fake_session: FakeSession, api_client: CWEAPIClient
    ) -> None:
        """Test a non-array relation payload raises DecodeError."""
        fake_session.add_json("/cwe/20/children", {"children": ["79"]})
        with pytest.raises(DecodeError):
            api_client.get_children("20")

    def test_children_with_unusable_entries(
        self, fake_session: FakeSession, api_client: CWEAPIClient
    ) -> None:
        """Test one bad entry does not hide the valid children."""
        fake_session.add_json("/cwe/20/children", ["79", None, "not-an-id", {"ID": "89"}])
        assert api_client.get_children("20") == ["CWE-79", "CWE-89"]


class TestClientConstruction:
    """Tests for client construction."""

    def test_from_config(self, fake_session: FakeSession) -> None:
        """Test a client built from configuration uses its base URL."""
        config = ClientConfig(base_url=f"{TEST_BASE_URL}/", rate_limit_interval=0, retry_delay=0)
        client = CWEAPIClient.from_config(config, session=fake_session)
        fake_session.add_json("/cwe/version", {"version": "4.12"})

        assert client.base_url == TEST_BASE_URL
        assert client.get_version().version == "4.12"


class TestResponseHelpers:
    """Tests for JSON shape helpers."""

    def test_get_field_case_insensitive(self) -> None:
        """Test exact keys win and other casings match."""
        assert get_field({"Name": "a", "name": "b"}, "name") == "b"
        assert get_field({"NAME": "a"}, "name") == "a"
        assert get_field({}, "name", "default") == "default"

    def test_extract_entity_errors(self) -> None:
        """Test malformed entity payloads."""
        with pytest.raises(DecodeError):
            extract_entity([], "weaknesses")
        with pytest.raises(DecodeError):
            extract_entity({"Weaknesses": []}, "weaknesses")
        with pytest.raises(DecodeError):
            extract_entity({"Weaknesses": {"ID": "1"}}, "weaknesses")
        with pytest.raises(InvalidIDError):
            extract_entity({"ID": True}, "weaknesses")

    def test_extract_entities_envelope(self) -> None:
        """Test the cwes envelope is unwrapped and non-objects dropped."""
        payload = {"cwes": {"CWE-79": {"ID": "79"}, "CWE-89": None}}
        assert extract_entities(payload) == {"CWE-79": {"ID": "79"}}

    def test_extract_id_list_skips_unusable_items(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test items without a usable ID are dropped and their siblings kept."""
        payload = ["79", None, "not-an-id", {"Name": "no id"}, {"ID": "89"}, True]
        with caplog.at_level(logging.WARNING):
            assert extract_id_list(payload) == ["CWE-79", "CWE-89"]
        assert "invalid ID 'not-an-id'" in caplog.text

    def test_extract_id_list_requires_array(self) -> None:
        """Test a non-array payload is still a decode error."""
        with pytest.raises(DecodeError):
            extract_id_list({"children": ["79"]})
