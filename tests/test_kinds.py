import pytest

from appsync.models import AppConfig
from appsync.okta.kinds import KINDS, get_kind


def _config(kind: str, **fields) -> AppConfig:
    return AppConfig.model_validate({"label": "App", "kind": kind, **fields})


@pytest.mark.parametrize("kind", sorted(KINDS))
def test_written_payload_reads_back_without_drift(kind):
    config = _config(
        kind,
        hide_ios=True,
        accessibility_self_service=True,
        app_settings={"region": "eu", "sandbox": False, "empty": ""},
    )
    app_kind = get_kind(kind)

    live = {**app_kind.write_fields(config), "id": "0oa1", "status": "ACTIVE"}

    assert app_kind.changed_fields(config, live) == []


def test_shared_fields_are_mapped():
    config = _config("bookmark", auto_submit_toolbar=True, hide_web=True)

    fields = get_kind("bookmark").read_fields(get_kind("bookmark").write_fields(config))

    assert fields["label"] == "App"
    assert fields["sign_on_mode"] == "BOOKMARK"
    assert fields["auto_submit_toolbar"] is True
    assert fields["hide_web"] is True
    assert fields["hide_ios"] is False


def test_bookmark_url_kept_out_of_free_form_settings():
    config = _config("bookmark", options={"url": "https://x.example"}, app_settings={"a": 1})
    kind = get_kind("bookmark")

    payload = kind.write_fields(config)
    fields = kind.read_fields(payload)

    assert payload["settings"]["app"] == {"a": 1, "url": "https://x.example", "requestIntegration": False}
    assert fields["url"] == "https://x.example"
    assert fields["app_settings_json"] == '{"a": 1}'


def test_changed_fields_reports_drift():
    kind = get_kind("swa")
    config = _config("swa", options={"url": "https://new.example"})
    live = kind.write_fields(_config("swa", options={"url": "https://old.example"}))

    assert kind.changed_fields(config, live) == ["url"]


def test_swa_username_template():
    config = _config("swa", options={"user_name_template": "${source.email}"})

    payload = get_kind("swa").write_fields(config)

    assert payload["signOnMode"] == "BROWSER_PLUGIN"
    assert payload["credentials"]["userNameTemplate"] == {
        "template": "${source.email}",
        "type": "BUILT_IN",
        "suffix": "",
    }


def test_saml_sign_on_and_acs_endpoints():
    config = _config(
        "saml",
        options={
            "sso_url": "https://sp.example/acs",
            "audience": "https://sp.example",
            "acs_endpoints": ["https://sp.example/a", "https://sp.example/b"],
        },
    )
    kind = get_kind("saml")

    payload = kind.write_fields(config)
    fields = kind.read_fields(payload)

    sign_on = payload["settings"]["signOn"]
    assert sign_on["ssoAcsUrl"] == "https://sp.example/acs"
    assert sign_on["allowMultipleAcsEndpoints"] is True
    assert sign_on["acsEndpoints"][1] == {"url": "https://sp.example/b", "index": 1}
    assert fields["acs_endpoints"] == ["https://sp.example/a", "https://sp.example/b"]
    assert fields["audience"] == "https://sp.example"


def test_saml_attribute_statements_and_single_logout():
    config = _config(
        "saml",
        options={
            "sso_url": "https://sp.example/acs",
            "attribute_statements": [{"name": "email", "values": ["user.email"]}],
            "single_logout_issuer": "https://sp.example",
            "single_logout_url": "https://sp.example/slo",
            "single_logout_certificate": "MIIC",
        },
    )
    kind = get_kind("saml")

    payload = kind.write_fields(config)
    sign_on = payload["settings"]["signOn"]

    assert sign_on["attributeStatements"][0]["name"] == "email"
    assert sign_on["attributeStatements"][0]["type"] == "EXPRESSION"
    assert sign_on["slo"] == {"enabled": True, "issuer": "https://sp.example", "logoutUrl": "https://sp.example/slo"}
    assert sign_on["spCertificate"] == {"x5c": ["MIIC"]}

    live = {**payload, "settings": {**payload["settings"], "signOn": {**sign_on, "slo": {"enabled": False}}}}
    assert kind.changed_fields(config, live) == [
        "single_logout_issuer",
        "single_logout_url",
        "single_logout_certificate",
    ]


def test_preconfigured_saml_app_uses_catalog_name():
    config = _config("saml", options={"preconfigured_app": "amazon_aws"}, app_settings={"awsEnvironmentType": "aws.amazon"})

    payload = get_kind("saml").write_fields(config)

    assert payload["name"] == "amazon_aws"
    assert "signOn" not in payload["settings"]
    assert payload["settings"]["app"] == {"awsEnvironmentType": "aws.amazon"}


def test_oauth_client_settings():
    config = _config(
        "oauth",
        options={"redirect_uris": ["https://app.example/cb"], "grant_types": ["authorization_code", "refresh_token"]},
    )

    payload = get_kind("oauth").write_fields(config)

    assert payload["name"] == "oidc_client"
    assert payload["settings"]["oauthClient"]["redirect_uris"] == ["https://app.example/cb"]
    assert payload["credentials"]["oauthClient"]["token_endpoint_auth_method"] == "client_secret_basic"


def test_unknown_kind():
    with pytest.raises(ValueError, match="Unknown app kind"):
        get_kind("wsfed")
