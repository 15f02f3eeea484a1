import json

import pytest

from bip_keychain.entity import KeyDerivation
from bip_keychain.errors import KeychainError, BK_E_ENTITY_FIELD, BK_E_ENTITY_JSON, BK_E_ENTITY_NOT_JSON
from bip_keychain.hashing import HashFunction


SCHEMA_ORG_ENTITY = """{
  "schema_type": "schema_org",
  "entity": {
    "@context": "https://schema.org",
    "@type": "SoftwareSourceCode",
    "name": "bip-keychain",
    "codeRepository": "https://github.com/akarve/bip-keychain"
  },
  "derivation_config": {
    "hash_function": "hmac_sha512",
    "hardened": true
  },
  "purpose": "Git commit signing",
  "metadata": {"created": "2025-01-01"}
}"""


def _record(**overrides):
    rec = {
        "schema_type": "schema_org",
        "entity": {"@type": "Thing", "name": "Test"},
        "derivation_config": {"hash_function": "hmac_sha512", "hardened": True},
    }
    rec.update(overrides)
    return rec


def test_parse_schema_org_entity():
    kd = KeyDerivation.from_json(SCHEMA_ORG_ENTITY)
    assert kd.schema_type == "schema_org"
    assert kd.hash_function is HashFunction.HMAC_SHA512
    assert kd.derivation_config.hardened is True
    assert kd.purpose == "Git commit signing"
    assert kd.metadata == {"created": "2025-01-01"}
    assert kd.entity["@type"] == "SoftwareSourceCode"


def test_minimal_entity_has_no_optional_fields():
    kd = KeyDerivation.from_dict(_record())
    assert kd.purpose is None
    assert kd.metadata is None
    assert "purpose" not in kd.to_dict()
    assert "metadata" not in kd.to_dict()


def test_blake2b_and_unhardened_flag_are_recorded():
    kd = KeyDerivation.from_dict(
        _record(derivation_config={"hash_function": "blake2b", "hardened": False})
    )
    assert kd.hash_function is HashFunction.BLAKE2B
    assert kd.derivation_config.hardened is False


def test_entity_json_is_canonical():
    kd = KeyDerivation.from_json(SCHEMA_ORG_ENTITY)
    assert kd.entity_json() == (
        '{"@context":"https://schema.org","@type":"SoftwareSourceCode",'
        '"codeRepository":"https://github.com/akarve/bip-keychain","name":"bip-keychain"}'
    )


def test_entity_can_be_any_json_value():
    assert KeyDerivation.from_dict(_record(entity="did:example:123")).entity_json() == '"did:example:123"'
    assert KeyDerivation.from_dict(_record(entity=[1, 2])).entity_json() == "[1,2]"


def test_unknown_top_level_fields_are_ignored():
    kd = KeyDerivation.from_dict(_record(comment="ignored"))
    assert kd.schema_type == "schema_org"


def test_invalid_json_is_an_entity_json_error():
    with pytest.raises(KeychainError) as ei:
        KeyDerivation.from_json("{not json")
    assert ei.value.code == BK_E_ENTITY_JSON
    assert ei.value.stage == "entity"


@pytest.mark.parametrize(
    "record, field",
    [
        ({"entity": {}, "derivation_config": {"hash_function": "sha256", "hardened": True}}, "schema_type"),
        ({"schema_type": "x", "derivation_config": {"hash_function": "sha256", "hardened": True}}, "entity"),
        ({"schema_type": "x", "entity": {}}, "derivation_config"),
        (_record(schema_type=42), "schema_type"),
        (_record(derivation_config={"hash_function": "md5", "hardened": True}), "derivation_config.hash_function"),
        (_record(derivation_config={"hash_function": "sha256"}), "derivation_config.hardened"),
        (_record(derivation_config={"hash_function": "sha256", "hardened": "yes"}), "derivation_config.hardened"),
        (_record(purpose=7), "purpose"),
    ],
)
def test_malformed_records_name_the_expected_field(record, field):
    with pytest.raises(KeychainError) as ei:
        KeyDerivation.from_dict(record)
    assert ei.value.code == BK_E_ENTITY_FIELD
    assert ei.value.details["field"] == field


def test_non_object_record_is_rejected():
    with pytest.raises(KeychainError) as ei:
        KeyDerivation.from_json("[1, 2, 3]")
    assert ei.value.code == BK_E_ENTITY_FIELD


def test_record_round_trips_through_json():
    kd = KeyDerivation.from_json(SCHEMA_ORG_ENTITY)
    again = KeyDerivation.from_json(kd.to_json())
    assert again == kd
    assert json.loads(kd.canonical_json())["derivation_config"] == {
        "hardened": True,
        "hash_function": "hmac_sha512",
    }


def test_lone_surrogate_in_entity_is_rejected_at_parse_time():
    text = json.dumps(_record(entity={"name": "\ud800"}))
    assert "\\ud800" in text
    with pytest.raises(KeychainError) as ei:
        KeyDerivation.from_json(text)
    assert ei.value.code == BK_E_ENTITY_JSON
    assert ei.value.stage == "entity"


def test_lone_surrogate_in_dict_entity_is_rejected():
    with pytest.raises(KeychainError) as ei:
        KeyDerivation.from_dict(_record(entity={"name": "\udfff"}))
    assert ei.value.code == BK_E_ENTITY_NOT_JSON


def test_non_finite_number_literal_is_rejected():
    with pytest.raises(KeychainError) as ei:
        KeyDerivation.from_json(json.dumps(_record(entity={"n": float("nan")})))
    assert ei.value.code == BK_E_ENTITY_JSON


@pytest.mark.parametrize("text", ["[" * 100000, '{"entity":' * 100000])
def test_deeply_nested_input_is_an_entity_json_error(text):
    with pytest.raises(KeychainError) as ei:
        KeyDerivation.from_json(text)
    assert ei.value.code == BK_E_ENTITY_JSON


def test_unexpected_config_key_with_apostrophe_is_named_exactly():
    record = _record(derivation_config={"hash_function": "sha256", "hardened": True, "don't": 1})
    with pytest.raises(KeychainError) as ei:
        KeyDerivation.from_dict(record)
    assert ei.value.code == BK_E_ENTITY_FIELD
    assert ei.value.details["field"] == "derivation_config.don't"


def test_first_of_several_missing_fields_is_named():
    with pytest.raises(KeychainError) as ei:
        KeyDerivation.from_dict({"derivation_config": {"hash_function": "sha256", "hardened": True}})
    assert ei.value.details["field"] == "schema_type"
    assert len(ei.value.details["errors"]) == 2
