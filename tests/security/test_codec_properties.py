"""
Property-based tests for the AES-256-GCM secure codec and key storage.
"""

import hashlib
import stat

import pytest
from hypothesis import given, settings, strategies as st

from tokioai.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    CorruptionError,
    SecurityError,
    ValidationError,
)
from tokioai.core.models import EncryptedBlob
from tokioai.security.encryption import SecureCodec, sha256_hex
from tokioai.security.keys import KeyStore


# JSON documents without floats, so equality after decoding is exact
json_values = st.recursive(
    st.none() | st.booleans() | st.integers() | st.text(),
    lambda children: st.lists(children, max_size=5)
    | st.dictionaries(st.text(max_size=10), children, max_size=5),
    max_leaves=20,
)


def _flip_hex(hex_text: str, index: int) -> str:
    """Flip the lowest bit of the byte at ``index``."""
    data = bytearray(bytes.fromhex(hex_text))
    data[index % len(data)] ^= 0x01
    return data.hex()


CODEC = SecureCodec.generate()


class TestRoundTrip:
    """Encrypt followed by decrypt restores the payload."""

    @settings(max_examples=100)
    @given(payload=json_values)
    def test_json_payload_round_trip(self, payload):
        assert CODEC.decrypt(CODEC.encrypt(payload)) == payload

    @given(plaintext=st.binary(max_size=512))
    def test_bytes_round_trip(self, plaintext: bytes):
        assert CODEC.decrypt_bytes(CODEC.encrypt_bytes(plaintext)) == plaintext

    def test_string_payload_round_trips_exactly(self):
        assert CODEC.decrypt(CODEC.encrypt("123")) == "123"

    def test_non_json_plaintext_returned_as_text(self):
        assert CODEC.decrypt(CODEC.encrypt_bytes(b"hola mundo")) == "hola mundo"

    def test_non_utf8_plaintext_is_corruption(self):
        with pytest.raises(CorruptionError):
            CODEC.decrypt(CODEC.encrypt_bytes(b"\xff\xfe\x00"))

    @pytest.mark.parametrize("payload", [object(), {1, 2}, float("nan")])
    def test_unserializable_payload_rejected(self, payload):
        with pytest.raises(ValidationError):
            CODEC.encrypt(payload)

    @pytest.mark.parametrize("payload", [{1: 2}, {"a": [{2: "b"}]}, [{"x": {None: 1}}]])
    def test_non_string_keys_rejected(self, payload):
        with pytest.raises(ValidationError):
            CODEC.encrypt(payload)

    def test_tuples_decrypt_as_lists(self):
        assert CODEC.decrypt(CODEC.encrypt({"pair": (1, 2)})) == {"pair": [1, 2]}

    @pytest.mark.parametrize(
        "field, value",
        [("auth_tag", "cd" * 15), ("ciphertext", "0 0"), ("iv", "")],
    )
    def test_unvalidated_blob_parameters_are_corruption(self, field, value):
        fields = CODEC.encrypt("x").model_dump()
        fields[field] = value
        blob = EncryptedBlob.model_construct(**fields)

        with pytest.raises(CorruptionError):
            CODEC.decrypt(blob)


class TestIVFreshness:
    """Every encryption uses a new IV."""

    def test_iv_and_tag_sizes(self):
        blob = CODEC.encrypt({"a": 1})
        assert len(bytes.fromhex(blob.iv)) == 16
        assert len(bytes.fromhex(blob.auth_tag)) == 16

    def test_same_payload_gives_distinct_blobs(self):
        blobs = [CODEC.encrypt({"resultado": 7}) for _ in range(50)]

        assert len({blob.iv for blob in blobs}) == 50
        assert len({blob.ciphertext for blob in blobs}) == 50


class TestTamperDetection:
    """Any modification of an encrypted blob fails authentication."""

    @given(payload=json_values, index=st.integers(min_value=0, max_value=1000))
    def test_ciphertext_bit_flip_detected(self, payload, index: int):
        blob = CODEC.encrypt(payload)
        tampered = blob.model_copy(update={"ciphertext": _flip_hex(blob.ciphertext, index)})

        with pytest.raises(AuthenticationError):
            CODEC.decrypt(tampered)

    @given(index=st.integers(min_value=0, max_value=15))
    def test_iv_bit_flip_detected(self, index: int):
        blob = CODEC.encrypt([1, 2, 3])
        tampered = blob.model_copy(update={"iv": _flip_hex(blob.iv, index)})

        with pytest.raises(AuthenticationError):
            CODEC.decrypt(tampered)

    @given(index=st.integers(min_value=0, max_value=15))
    def test_tag_bit_flip_detected(self, index: int):
        blob = CODEC.encrypt([1, 2, 3])
        tampered = blob.model_copy(update={"auth_tag": _flip_hex(blob.auth_tag, index)})

        with pytest.raises(AuthenticationError):
            CODEC.decrypt(tampered)

    def test_wrong_key_detected(self):
        blob = CODEC.encrypt({"results": []})

        with pytest.raises(AuthenticationError) as exc_info:
            SecureCodec.generate().decrypt(blob)
        assert isinstance(exc_info.value, SecurityError)


class TestKeyHandling:
    """Key construction, export and import."""

    @pytest.mark.parametrize("key", [None, "k" * 32, b"short", b"x" * 31, b"x" * 33])
    def test_invalid_key_rejected(self, key):
        with pytest.raises(ConfigurationError):
            SecureCodec(key)

    def test_invalid_hex_rejected(self):
        with pytest.raises(ConfigurationError):
            SecureCodec.from_hex("not-hex")

    def test_export_import_preserves_decryption(self):
        codec = SecureCodec.generate()
        blob = codec.encrypt({"resultado": 17})

        restored = SecureCodec.from_hex(codec.export_key())

        assert restored.decrypt(blob) == {"resultado": 17}
        assert restored.fingerprint() == codec.fingerprint()

    def test_import_key_replaces_active_key(self):
        codec = SecureCodec.generate()
        other = SecureCodec.generate()
        blob = other.encrypt("secreto")

        codec.import_key(other.export_key())

        assert codec.decrypt(blob) == "secreto"

    def test_fingerprint_does_not_reveal_key(self):
        codec = SecureCodec.generate()
        assert len(codec.fingerprint()) == 16
        assert codec.fingerprint() not in codec.export_key()


class TestSha256:
    """Digest helper."""

    @given(data=st.binary())
    def test_matches_hashlib(self, data: bytes):
        assert sha256_hex(data) == hashlib.sha256(data).hexdigest()

    def test_strings_are_utf8_encoded(self):
        assert sha256_hex("ñ") == hashlib.sha256("ñ".encode("utf-8")).hexdigest()


class TestKeyStore:
    """Key files on disk."""

    def test_save_and_load(self, temp_dir):
        store = KeyStore(temp_dir / "keys" / "tokioai.key")
        codec = SecureCodec.generate()

        path = store.save(codec)

        assert store.exists()
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert store.load().export_key() == codec.export_key()

    def test_existing_key_not_overwritten(self, temp_dir):
        store = KeyStore(temp_dir / "tokioai.key")
        first = SecureCodec.generate()
        store.save(first)

        with pytest.raises(ConfigurationError):
            store.save(SecureCodec.generate())
        assert store.load().export_key() == first.export_key()

    def test_overwrite_replaces_key(self, temp_dir):
        store = KeyStore(temp_dir / "tokioai.key")
        store.save(SecureCodec.generate())
        second = SecureCodec.generate()

        store.save(second, overwrite=True)

        assert store.load().export_key() == second.export_key()

    def test_missing_key_file(self, temp_dir):
        with pytest.raises(ConfigurationError):
            KeyStore(temp_dir / "absent.key").load()

    def test_garbage_key_file(self, temp_dir):
        key_file = temp_dir / "bad.key"
        key_file.write_text("definitely not a key\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            KeyStore(key_file).load()


def test_blob_survives_json_document():
    blob = CODEC.encrypt({"x": "ü"})
    restored = EncryptedBlob.model_validate(blob.to_json())
    assert CODEC.decrypt(restored) == {"x": "ü"}
