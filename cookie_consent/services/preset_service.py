"""
Predefined third-party service templates.

A preset bundles what an administrator would otherwise type by hand for a
common tracking service: its category, privacy policy link, the cookies it
sets and a script template where ``{{SERVICE_ID}}`` is replaced by the
account/container id configured on the service.
"""

SERVICE_ID_PLACEHOLDER = "{{SERVICE_ID}}"

PRESETS: dict[str, dict] = {
    "google_analytics": {
        "name": "Google Analytics",
        "description": "Web analytics service that tracks and reports website traffic",
        "category": "analytics",
        "privacy_policy_url": "https://policies.google.com/privacy",
        "script_template": (
            '<script async src="https://www.googletagmanager.com/gtag/js?id={{SERVICE_ID}}"></script>\n'
            "<script>\n"
            "  window.dataLayer = window.dataLayer || [];\n"
            "  function gtag(){dataLayer.push(arguments);}\n"
            "  gtag('js', new Date());\n"
            "  gtag('config', '{{SERVICE_ID}}');\n"
            "</script>"
        ),
        "cookies": [
            {
                "name": "_ga",
                "purpose": "Registers a unique ID used to generate statistical data on how you use the website",
                "expiry": "2 years",
            },
            {
                "name": "_gid",
                "purpose": "Registers a unique ID used to generate statistical data on how you use the website",
                "expiry": "24 hours",
            },
            {
                "name": "_gat",
                "purpose": "Used by Google Analytics to throttle request rate",
                "expiry": "1 minute",
            },
        ],
    },
    "google_tag_manager": {
        "name": "Google Tag Manager",
        "description": "Tag management system that allows you to quickly update tags and code snippets",
        "category": "analytics",
        "privacy_policy_url": "https://policies.google.com/privacy",
        "script_template": (
            "<script>(function(w,d,s,l,i){w[l]=w[l]||[];w[l].push({'gtm.start':\n"
            "new Date().getTime(),event:'gtm.js'});var f=d.getElementsByTagName(s)[0],\n"
            "j=d.createElement(s),dl=l!='dataLayer'?'&l='+l:'';j.async=true;j.src=\n"
            "'https://www.googletagmanager.com/gtm.js?id='+i+dl;f.parentNode.insertBefore(j,f);\n"
            "})(window,document,'script','dataLayer','{{SERVICE_ID}}');</script>"
        ),
        "cookies": [
            {
                "name": "_ga",
                "purpose": "Registers a unique ID used to generate statistical data",
                "expiry": "2 years",
            },
            {
                "name": "_gid",
                "purpose": "Registers a unique ID used to generate statistical data",
                "expiry": "24 hours",
            },
        ],
    },
    "facebook_pixel": {
        "name": "Facebook Pixel",
        "description": "Analytics tool that helps measure the effectiveness of advertising",
        "category": "marketing",
        "privacy_policy_url": "https://www.facebook.com/privacy/policy/",
        "script_template": (
            "<script>\n"
            "!function(f,b,e,v,n,t,s){if(f.fbq)return;n=f.fbq=function(){n.callMethod?\n"
            "n.callMethod.apply(n,arguments):n.queue.push(arguments)};if(!f._fbq)f._fbq=n;\n"
            "n.push=n;n.loaded=!0;n.version='2.0';n.queue=[];t=b.createElement(e);t.async=!0;\n"
            "t.src=v;s=b.getElementsByTagName(e)[0];s.parentNode.insertBefore(t,s)}(window,\n"
            "document,'script','https://connect.facebook.net/en_US/fbevents.js');\n"
            "fbq('init', '{{SERVICE_ID}}');\n"
            "fbq('track', 'PageView');\n"
            "</script>"
        ),
        "cookies": [
            {
                "name": "_fbp",
                "purpose": "Used by Facebook to deliver advertising and measure and improve the relevance of ads",
                "expiry": "3 months",
            },
            {
                "name": "fr",
                "purpose": "Contains browser and user unique ID combination for targeted advertising",
                "expiry": "3 months",
            },
        ],
    },
    "hotjar": {
        "name": "Hotjar",
        "description": "Behavior analytics with heatmaps and session recordings",
        "category": "analytics",
        "privacy_policy_url": "https://www.hotjar.com/legal/policies/privacy/",
        "script_template": (
            "<script>\n"
            "(function(h,o,t,j,a,r){h.hj=h.hj||function(){(h.hj.q=h.hj.q||[]).push(arguments)};\n"
            "h._hjSettings={hjid:{{SERVICE_ID}},hjsv:6};a=o.getElementsByTagName('head')[0];\n"
            "r=o.createElement('script');r.async=1;r.src=t+h._hjSettings.hjid+j+h._hjSettings.hjsv;\n"
            "a.appendChild(r);})(window,document,'https://static.hotjar.com/c/hotjar-','.js?sv=');\n"
            "</script>"
        ),
        "cookies": [
            {
                "name": "_hjSessionUser",
                "purpose": "Persists the Hotjar User ID unique to the site",
                "expiry": "1 year",
            },
            {
                "name": "_hjSession",
                "purpose": "Holds current session data",
                "expiry": "30 minutes",
            },
        ],
    },
    "linkedin_insight": {
        "name": "LinkedIn Insight Tag",
        "description": "Conversion tracking and retargeting for LinkedIn ads",
        "category": "marketing",
        "privacy_policy_url": "https://www.linkedin.com/legal/privacy-policy",
        "script_template": (
            '<script>_linkedin_partner_id = "{{SERVICE_ID}}";\n'
            "window._linkedin_data_partner_ids = window._linkedin_data_partner_ids || [];\n"
            "window._linkedin_data_partner_ids.push(_linkedin_partner_id);</script>\n"
            '<script async src="https://snap.licdn.com/li.lms-analytics/insight.min.js"></script>'
        ),
        "cookies": [
            {
                "name": "bcookie",
                "purpose": "Browser identifier cookie used by LinkedIn",
                "expiry": "1 year",
            },
            {
                "name": "lidc",
                "purpose": "Used for routing within LinkedIn's data centers",
                "expiry": "24 hours",
            },
        ],
    },
}


def get_preset(identifier: str) -> dict | None:
    return PRESETS.get(identifier)


def get_preset_identifiers() -> list[str]:
    return list(PRESETS)


def get_cookies_for_preset(identifier: str) -> list[dict]:
    preset = get_preset(identifier)
    return preset["cookies"] if preset else []


def get_script_for_preset(identifier: str, service_id: str) -> str:
    """Return the preset's script with the service id filled in ('' for unknown presets)."""
    preset = get_preset(identifier)
    if not preset:
        return ""
    return preset["script_template"].replace(SERVICE_ID_PLACEHOLDER, service_id)
