"""Shared test fixtures for kube-secretgen tests."""

from unittest.mock import MagicMock, patch

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from kube_secretgen.config import GeneratorConfig
from kube_secretgen.models import OwnerReference, SecretKind, SecretMaterial
from kube_secretgen.store import InMemoryStore


@pytest.fixture
def config():
    """Generator defaults with a small ssh key size to keep tests fast."""
    return GeneratorConfig(ssh_key_length=1024)


@pytest.fixture
def store():
    """Empty in-memory material store."""
    return InMemoryStore()


@pytest.fixture(scope="session")
def rsa_private_key():
    """A 1024-bit RSA key shared by the whole session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=1024)


@pytest.fixture(scope="session")
def rsa_private_pem(rsa_private_key):
    """The session RSA key as PKCS#1 PEM."""
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def rsa_public_line(rsa_private_key):
    """The session RSA key as an authorized_keys line."""
    return (
        rsa_private_key.public_key().public_bytes(
            encoding=serialization.Encoding.OpenSSH,
            format=serialization.PublicFormat.OpenSSH,
        )
        + b"\n"
    )


@pytest.fixture
def owned_material():
    """Factory for material owned by a given specification kind."""

    def _make(kind: SecretKind, values: dict[str, bytes], name: str = "app") -> SecretMaterial:
        return SecretMaterial(
            name=name,
            namespace="default",
            values=dict(values),
            owner_references=[
                OwnerReference(api_version="secretgenerator.mittwald.de/v1alpha1", kind=kind.value, name=name)
            ],
        )

    return _make


@pytest.fixture
def mock_kube_config():
    """Mock kubernetes config loading."""
    with patch("kubernetes.config.load_kube_config") as mock:
        yield mock


@pytest.fixture
def mock_core_v1_api():
    """Mock CoreV1Api for secret access."""
    with patch("kubernetes.client.CoreV1Api") as mock:
        api_instance = MagicMock()
        mock.return_value = api_instance
        yield api_instance


@pytest.fixture
def mock_custom_objects_api():
    """Mock CustomObjectsApi for status updates."""
    with patch("kubernetes.client.CustomObjectsApi") as mock:
        api_instance = MagicMock()
        mock.return_value = api_instance
        yield api_instance


@pytest.fixture
def kubernetes_mocks(mock_kube_config, mock_core_v1_api, mock_custom_objects_api):
    """Combined fixture for creating a KubernetesStore without cluster access."""
    return {
        "config": mock_kube_config,
        "core_api": mock_core_v1_api,
        "custom_api": mock_custom_objects_api,
    }


@pytest.fixture
def sample_string_secret_yaml():
    """Sample StringSecret manifest."""
    return """apiVersion: secretgenerator.mittwald.de/v1alpha1
kind: StringSecret
metadata:
  name: app
  namespace: default
spec:
  forceRegenerate: false
  data:
    user: admin
  fields:
    - fieldName: token
      encoding: hex
      length: "16"
    - fieldName: key
      length: 10B
"""


@pytest.fixture
def sample_basic_auth_yaml():
    """Sample BasicAuth manifest."""
    return """apiVersion: secretgenerator.mittwald.de/v1alpha1
kind: BasicAuth
metadata:
  name: ingress-auth
  namespace: default
spec:
  username: bob
  length: "20"
  encoding: base64
"""


@pytest.fixture
def sample_annotated_secret_yaml():
    """Sample Secret annotated for generation."""
    return """apiVersion: v1
kind: Secret
metadata:
  name: annotated
  namespace: default
  annotations:
    secret-generator.v1.mittwald.de/autogenerate: password
type: Opaque
data:
  username: YWRtaW4=
"""
