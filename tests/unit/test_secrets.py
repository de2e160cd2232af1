"""Tests for Kubernetes secrets utilities."""

from __future__ import annotations

import base64
from unittest.mock import Mock

import pytest
from kubernetes import client

from aiven_operator.constants import FIELD_MANAGER, LABEL_MANAGED_BY
from aiven_operator.utils.secrets import (
    build_owner_reference,
    build_secret,
    get_secret_value,
    prune_empty,
    synthesize_secret,
    upsert_secret,
)

OWNER = {
    "apiVersion": "aiven.io/v1alpha1",
    "kind": "PostgreSQL",
    "metadata": {"name": "p1-db", "namespace": "default", "uid": "uid-1"},
}


def encode(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("utf-8")


class TestGetSecretValue:
    """Test cases for get_secret_value function."""

    def test_get_secret_value_success(self):
        """Test successfully getting a secret value."""
        mock_api = Mock()
        mock_api.read_namespaced_secret.return_value = Mock(data={"token": encode("api-token")})

        result = get_secret_value(mock_api, "default", "aiven", "token")

        assert result == "api-token"
        mock_api.read_namespaced_secret.assert_called_once_with(name="aiven", namespace="default")

    def test_get_secret_value_missing_secret(self):
        """Test a missing secret raises ValueError."""
        mock_api = Mock()
        mock_api.read_namespaced_secret.side_effect = client.exceptions.ApiException(status=404)

        with pytest.raises(ValueError, match="not found"):
            get_secret_value(mock_api, "default", "aiven", "token")

    def test_get_secret_value_missing_key(self):
        """Test a missing key raises ValueError."""
        mock_api = Mock()
        mock_api.read_namespaced_secret.return_value = Mock(data={"other": encode("x")})

        with pytest.raises(ValueError, match="Key 'token'"):
            get_secret_value(mock_api, "default", "aiven", "token")

    def test_get_secret_value_empty(self):
        """Test an empty value raises ValueError."""
        mock_api = Mock()
        mock_api.read_namespaced_secret.return_value = Mock(data={"token": encode("  ")})

        with pytest.raises(ValueError, match="empty"):
            get_secret_value(mock_api, "default", "aiven", "token")

    def test_get_secret_value_other_error(self):
        """Test other API errors propagate."""
        mock_api = Mock()
        mock_api.read_namespaced_secret.side_effect = client.exceptions.ApiException(status=500)

        with pytest.raises(client.exceptions.ApiException):
            get_secret_value(mock_api, "default", "aiven", "token")


class TestBuildSecret:
    """Test cases for secret construction."""

    def test_prune_empty(self):
        """Test empty values never reach the secret."""
        result = prune_empty({"HOST": "h", "PORT": 5432, "USER": "", "PASSWORD": None})

        assert result == {"HOST": "h", "PORT": "5432"}

    def test_owner_reference(self):
        """Test the owner reference makes the descriptor the controller."""
        reference = build_owner_reference(OWNER)

        assert reference["uid"] == "uid-1"
        assert reference["controller"] is True
        assert reference["blockOwnerDeletion"] is True

    def test_build_secret(self):
        """Test labels, owner and pruned data are set."""
        secret = build_secret("default", "p1-db", {"PGHOST": "h", "PGSSLMODE": ""}, OWNER)

        assert secret.metadata.name == "p1-db"
        assert secret.metadata.labels[LABEL_MANAGED_BY] == "aiven-operator"
        assert secret.metadata.owner_references[0]["kind"] == "PostgreSQL"
        assert secret.string_data == {"PGHOST": "h"}


class TestUpsertSecret:
    """Test cases for upsert_secret and synthesize_secret."""

    def test_create_when_missing(self):
        """Test a missing secret is created."""
        mock_api = Mock()
        mock_api.read_namespaced_secret.side_effect = client.exceptions.ApiException(status=404)
        secret = build_secret("default", "p1-db", {"PGHOST": "h"}, OWNER)

        upsert_secret(mock_api, secret)

        mock_api.create_namespaced_secret.assert_called_once_with(
            namespace="default", body=secret, field_manager=FIELD_MANAGER
        )
        mock_api.replace_namespaced_secret.assert_not_called()

    def test_replace_when_present(self):
        """Test an existing secret is replaced at its current version."""
        mock_api = Mock()
        mock_api.read_namespaced_secret.return_value = Mock(metadata=Mock(resource_version="42"))
        secret = build_secret("default", "p1-db", {"PGHOST": "h"}, OWNER)

        upsert_secret(mock_api, secret)

        mock_api.replace_namespaced_secret.assert_called_once()
        assert secret.metadata.resource_version == "42"
        mock_api.create_namespaced_secret.assert_not_called()

    def test_read_error_propagates(self):
        """Test unexpected read failures are not swallowed."""
        mock_api = Mock()
        mock_api.read_namespaced_secret.side_effect = client.exceptions.ApiException(status=403)

        with pytest.raises(client.exceptions.ApiException):
            upsert_secret(mock_api, build_secret("default", "p1-db", {}, OWNER))

    def test_synthesize_secret(self):
        """Test synthesize_secret builds and stores the secret."""
        mock_api = Mock()
        mock_api.read_namespaced_secret.side_effect = client.exceptions.ApiException(status=404)

        synthesize_secret(mock_api, "default", "p1-db", {"PGHOST": "h", "PGPASSWORD": None}, OWNER)

        body = mock_api.create_namespaced_secret.call_args.kwargs["body"]
        assert body.string_data == {"PGHOST": "h"}
