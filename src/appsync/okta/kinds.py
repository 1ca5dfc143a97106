"""Application kinds.

Okta applications share a common shell (label, status, visibility,
accessibility, free-form app settings) and differ in their sign-on block.
Each kind exposes the same two operations:

- ``write_fields(config)`` builds the API payload for an ``AppConfig``
- ``read_fields(app)`` flattens an API payload into a comparable dict

Reading back a written payload yields the same view as reading the live app
when nothing has drifted, which is what ``changed_fields`` relies on.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, Field

from appsync.models.app import AppConfig, app_settings_json, serialize_app_settings

# Fields managed outside of the app payload comparison
_UNCOMPARED_FIELDS = {"name", "status"}


class BookmarkOptions(BaseModel):
    url: str = ""
    request_integration: bool = False


class SwaOptions(BaseModel):
    url: str = ""
    url_regex: str = ""
    button_field: str = ""
    username_field: str = ""
    password_field: str = ""
    user_name_template: str = "${source.login}"
    user_name_template_type: str = "BUILT_IN"
    user_name_template_suffix: str = ""


class SamlAttributeStatement(BaseModel):
    name: str
    namespace: str = "urn:oasis:names:tc:SAML:2.0:attrname-format:unspecified"
    type: str = "EXPRESSION"
    values: list[str] = Field(default_factory=list)
    filter_type: str | None = None
    filter_value: str | None = None


class SamlOptions(BaseModel):
    preconfigured_app: str | None = None
    sso_url: str = ""
    recipient: str = ""
    destination: str = ""
    audience: str = ""
    idp_issuer: str = "http://www.okta.com/${org.externalKey}"
    default_relay_state: str = ""
    subject_name_id_template: str = "${user.userName}"
    subject_name_id_format: str = "urn:oasis:names:tc:SAML:1.1:nameid-format:unspecified"
    response_signed: bool = True
    assertion_signed: bool = True
    signature_algorithm: str = "RSA_SHA256"
    digest_algorithm: str = "SHA256"
    honor_force_authn: bool = True
    authn_context_class_ref: str = "urn:oasis:names:tc:SAML:2.0:ac:classes:PasswordProtectedTransport"
    acs_endpoints: list[str] = Field(default_factory=list)
    attribute_statements: list[SamlAttributeStatement] = Field(default_factory=list)
    single_logout_issuer: str = ""
    single_logout_url: str = ""
    single_logout_certificate: str = ""


class OAuthOptions(BaseModel):
    type: str = "web"
    client_uri: str = ""
    login_uri: str = ""
    redirect_uris: list[str] = Field(default_factory=list)
    post_logout_redirect_uris: list[str] = Field(default_factory=list)
    response_types: list[str] = Field(default_factory=lambda: ["code"])
    grant_types: list[str] = Field(default_factory=lambda: ["authorization_code"])
    token_endpoint_auth_method: str = "client_secret_basic"


class AppKind:
    """Base application kind: the shell every Okta app shares."""

    kind: ClassVar[str] = ""
    app_name: ClassVar[str] = ""
    sign_on_mode: ClassVar[str] = ""
    options_model: ClassVar[type[BaseModel]] = BaseModel

    def options(self, config: AppConfig) -> Any:
        return self.options_model.model_validate(config.options)

    def write_fields(self, config: AppConfig) -> dict[str, Any]:
        """Build the app payload for ``config``."""
        payload: dict[str, Any] = {
            "name": self.app_name,
            "label": config.label,
            "signOnMode": self.sign_on_mode,
            "visibility": {
                "autoSubmitToolbar": config.auto_submit_toolbar,
                "hide": {"iOS": config.hide_ios, "web": config.hide_web},
            },
            "accessibility": {
                "selfService": config.accessibility_self_service,
                "errorRedirectUrl": config.accessibility_error_redirect_url,
            },
            "settings": {"app": serialize_app_settings(config.app_settings)},
        }
        self._write_specific(payload, self.options(config))
        return payload

    def read_fields(self, app: dict[str, Any]) -> dict[str, Any]:
        """Flatten an app payload into field name -> value."""
        visibility = app.get("visibility") or {}
        hide = visibility.get("hide") or {}
        accessibility = app.get("accessibility") or {}
        settings = app.get("settings") or {}

        fields: dict[str, Any] = {
            "name": app.get("name"),
            "label": app.get("label"),
            "status": app.get("status"),
            "sign_on_mode": app.get("signOnMode"),
            "auto_submit_toolbar": bool(visibility.get("autoSubmitToolbar", False)),
            "hide_ios": bool(hide.get("iOS", False)),
            "hide_web": bool(hide.get("web", False)),
            "accessibility_self_service": bool(accessibility.get("selfService", False)),
            "accessibility_error_redirect_url": accessibility.get("errorRedirectUrl"),
            "app_settings_json": app_settings_json(self._free_form_settings(settings.get("app"))),
        }
        fields.update(self._read_specific(app))
        return fields

    def changed_fields(self, config: AppConfig, app: dict[str, Any]) -> list[str]:
        """Names of fields whose live value differs from ``config``."""
        desired = self.read_fields(self.write_fields(config))
        current = self.read_fields(app)
        return [
            key
            for key, value in desired.items()
            if key not in _UNCOMPARED_FIELDS and current.get(key) != value
        ]

    def _free_form_settings(self, raw: dict[str, Any] | None) -> dict[str, Any]:
        """App settings minus the keys this kind manages itself."""
        return dict(raw or {})

    def _write_specific(self, payload: dict[str, Any], options: Any) -> None:
        pass

    def _read_specific(self, app: dict[str, Any]) -> dict[str, Any]:
        return {}


class BookmarkApp(AppKind):
    """Plain link tile. Also the generic fallback kind."""

    kind = "bookmark"
    app_name = "bookmark"
    sign_on_mode = "BOOKMARK"
    options_model = BookmarkOptions

    _OWN_KEYS = ("url", "requestIntegration")

    def _write_specific(self, payload: dict[str, Any], options: BookmarkOptions) -> None:
        payload["settings"]["app"].update(
            {"url": options.url, "requestIntegration": options.request_integration}
        )

    def _read_specific(self, app: dict[str, Any]) -> dict[str, Any]:
        app_settings = ((app.get("settings") or {}).get("app")) or {}
        return {
            "url": app_settings.get("url", ""),
            "request_integration": bool(app_settings.get("requestIntegration", False)),
        }

    def _free_form_settings(self, raw: dict[str, Any] | None) -> dict[str, Any]:
        return {k: v for k, v in (raw or {}).items() if k not in self._OWN_KEYS}


class SwaApp(AppKind):
    """Secure Web Authentication (browser plugin password fill)."""

    kind = "swa"
    app_name = "template_swa"
    sign_on_mode = "BROWSER_PLUGIN"
    options_model = SwaOptions

    _SETTING_KEYS = {
        "url": "url",
        "url_regex": "loginUrlRegex",
        "button_field": "buttonField",
        "username_field": "usernameField",
        "password_field": "passwordField",
    }

    def _write_specific(self, payload: dict[str, Any], options: SwaOptions) -> None:
        for attr, key in self._SETTING_KEYS.items():
            value = getattr(options, attr)
            if value:
                payload["settings"]["app"][key] = value
        payload["credentials"] = {
            "scheme": "EDIT_USERNAME_AND_PASSWORD",
            "userNameTemplate": {
                "template": options.user_name_template,
                "type": options.user_name_template_type,
                "suffix": options.user_name_template_suffix,
            },
        }

    def _read_specific(self, app: dict[str, Any]) -> dict[str, Any]:
        app_settings = ((app.get("settings") or {}).get("app")) or {}
        template = ((app.get("credentials") or {}).get("userNameTemplate")) or {}
        fields = {attr: app_settings.get(key, "") for attr, key in self._SETTING_KEYS.items()}
        fields.update(
            {
                "user_name_template": template.get("template", ""),
                "user_name_template_type": template.get("type", ""),
                "user_name_template_suffix": template.get("suffix") or "",
            }
        )
        return fields

    def _free_form_settings(self, raw: dict[str, Any] | None) -> dict[str, Any]:
        own = set(self._SETTING_KEYS.values())
        return {k: v for k, v in (raw or {}).items() if k not in own}


class SamlApp(AppKind):
    """SAML 2.0 app, custom or preconfigured from the catalog."""

    kind = "saml"
    app_name = ""
    sign_on_mode = "SAML_2_0"
    options_model = SamlOptions

    # attribute -> signOn key
    _SIGN_ON_KEYS = {
        "sso_url": "ssoAcsUrl",
        "recipient": "recipient",
        "destination": "destination",
        "audience": "audience",
        "idp_issuer": "idpIssuer",
        "default_relay_state": "defaultRelayState",
        "subject_name_id_template": "subjectNameIdTemplate",
        "subject_name_id_format": "subjectNameIdFormat",
        "response_signed": "responseSigned",
        "assertion_signed": "assertionSigned",
        "signature_algorithm": "signatureAlgorithm",
        "digest_algorithm": "digestAlgorithm",
        "honor_force_authn": "honorForceAuthn",
        "authn_context_class_ref": "authnContextClassRef",
    }

    def write_fields(self, config: AppConfig) -> dict[str, Any]:
        payload = super().write_fields(config)
        options = self.options(config)
        if options.preconfigured_app:
            payload["name"] = options.preconfigured_app
        return payload

    def _write_specific(self, payload: dict[str, Any], options: SamlOptions) -> None:
        if options.preconfigured_app:
            # Catalog apps only take free-form settings
            return
        sign_on = {key: getattr(options, attr) for attr, key in self._SIGN_ON_KEYS.items()}
        if options.acs_endpoints:
            sign_on["allowMultipleAcsEndpoints"] = True
            sign_on["acsEndpoints"] = [
                {"url": url, "index": i} for i, url in enumerate(options.acs_endpoints)
            ]
        sign_on["attributeStatements"] = [
            {
                "name": st.name,
                "namespace": st.namespace,
                "type": st.type,
                "values": list(st.values),
                "filterType": st.filter_type,
                "filterValue": st.filter_value,
            }
            for st in options.attribute_statements
        ]
        if options.single_logout_url:
            sign_on["slo"] = {
                "enabled": True,
                "issuer": options.single_logout_issuer,
                "logoutUrl": options.single_logout_url,
            }
            if options.single_logout_certificate:
                sign_on["spCertificate"] = {"x5c": [options.single_logout_certificate]}
        payload["settings"]["signOn"] = sign_on

    def _read_specific(self, app: dict[str, Any]) -> dict[str, Any]:
        sign_on = (app.get("settings") or {}).get("signOn")
        if not sign_on:
            return {}
        fields = {attr: sign_on.get(key) for attr, key in self._SIGN_ON_KEYS.items()}
        if sign_on.get("allowMultipleAcsEndpoints"):
            fields["acs_endpoints"] = [e["url"] for e in sign_on.get("acsEndpoints") or []]
        else:
            fields["acs_endpoints"] = []
        fields["attribute_statements"] = [
            {
                "name": st.get("name"),
                "namespace": st.get("namespace"),
                "type": st.get("type"),
                "values": list(st.get("values") or []),
                "filter_type": st.get("filterType"),
                "filter_value": st.get("filterValue"),
            }
            for st in sign_on.get("attributeStatements") or []
        ]

        slo = sign_on.get("slo") or {}
        if slo.get("enabled"):
            x5c = (sign_on.get("spCertificate") or {}).get("x5c") or []
            fields["single_logout_issuer"] = slo.get("issuer") or ""
            fields["single_logout_url"] = slo.get("logoutUrl") or ""
            fields["single_logout_certificate"] = x5c[0] if x5c else ""
        else:
            fields["single_logout_issuer"] = ""
            fields["single_logout_url"] = ""
            fields["single_logout_certificate"] = ""
        return fields


class OAuthApp(AppKind):
    """OpenID Connect client."""

    kind = "oauth"
    app_name = "oidc_client"
    sign_on_mode = "OPENID_CONNECT"
    options_model = OAuthOptions

    def _write_specific(self, payload: dict[str, Any], options: OAuthOptions) -> None:
        payload["credentials"] = {
            "oauthClient": {"token_endpoint_auth_method": options.token_endpoint_auth_method},
        }
        payload["settings"]["oauthClient"] = {
            "application_type": options.type,
            "client_uri": options.client_uri or None,
            "initiate_login_uri": options.login_uri or None,
            "redirect_uris": list(options.redirect_uris),
            "post_logout_redirect_uris": list(options.post_logout_redirect_uris),
            "response_types": list(options.response_types),
            "grant_types": list(options.grant_types),
        }

    def _read_specific(self, app: dict[str, Any]) -> dict[str, Any]:
        oauth = (app.get("settings") or {}).get("oauthClient") or {}
        creds = ((app.get("credentials") or {}).get("oauthClient")) or {}
        return {
            "type": oauth.get("application_type"),
            "client_uri": oauth.get("client_uri") or "",
            "login_uri": oauth.get("initiate_login_uri") or "",
            "redirect_uris": list(oauth.get("redirect_uris") or []),
            "post_logout_redirect_uris": list(oauth.get("post_logout_redirect_uris") or []),
            "response_types": list(oauth.get("response_types") or []),
            "grant_types": list(oauth.get("grant_types") or []),
            "token_endpoint_auth_method": creds.get("token_endpoint_auth_method"),
        }


KINDS: dict[str, AppKind] = {
    kind.kind: kind for kind in (BookmarkApp(), SwaApp(), SamlApp(), OAuthApp())
}


def get_kind(name: str) -> AppKind:
    """Look up an application kind by name."""
    try:
        return KINDS[name]
    except KeyError:
        raise ValueError(
            f"Unknown app kind '{name}'. Expected one of: {', '.join(sorted(KINDS))}"
        ) from None
