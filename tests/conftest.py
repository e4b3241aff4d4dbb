"""Shared scanner payloads for AppSage tests."""

from __future__ import annotations

from typing import Any

import pytest


def build_mobsf_payload() -> dict[str, Any]:
    """Representative MobSF report without per-section summary blocks."""

    return {
        "app_name": "DemoBank",
        "package_name": "com.example.demobank",
        "version_name": "2.4.1",
        "size": "18.2MB",
        "md5": "3f2a9c1e7b",
        "certificate_analysis": {
            "certificate_findings": [
                [
                    "high",
                    "Application is signed with SHA1withRSA.",
                    "Weak signature algorithm",
                ],
                ["secure", "Application is signed with v2 scheme.", "APK v2 scheme"],
            ]
        },
        "manifest_analysis": {
            "manifest_findings": [
                {
                    "title": "Application Data can be Backed up",
                    "severity": "warning",
                    "description": "android:allowBackup is set to true.",
                },
                {"title": "Debuggable disabled", "severity": "secure"},
            ]
        },
        "code_analysis": {
            "findings": {
                "android_insecure_random": {
                    "metadata": {
                        "description": "The App uses an insecure random generator.",
                        "severity": "high",
                        "cwe": "CWE-330",
                        "owasp-mobile": "M5",
                    },
                    "files": {"b/Util.java": "12", "a/Main.java": "40"},
                }
            }
        },
        "network_security": {
            "network_findings": [
                {
                    "scope": ["*"],
                    "severity": "high",
                    "description": "Base config allows cleartext traffic.",
                }
            ]
        },
        "permissions": {
            "android.permission.CAMERA": {
                "status": "dangerous",
                "info": "take pictures and videos",
                "description": "Allows the app to use the camera.",
            },
            "android.permission.INTERNET": {
                "status": "normal",
                "description": "full Internet access",
            },
            "android.permission.READ_SMS": {
                "status": "dangerous",
                "description": "read SMS or MMS",
            },
        },
        "binary_analysis": [
            {
                "name": "lib/arm64-v8a/libnative.so",
                "nx": {
                    "is_nx": True,
                    "severity": "info",
                    "description": "The binary has NX bit set.",
                },
                "stack_canary": {
                    "has_canary": False,
                    "severity": "high",
                    "description": "This binary does not have a stack canary.",
                },
            }
        ],
    }


def build_mobsf_payload_with_summaries() -> dict[str, Any]:
    """The same MobSF report carrying the per-section summary blocks."""

    payload = build_mobsf_payload()
    payload["certificate_analysis"]["certificate_summary"] = {
        "high": 1,
        "warning": 0,
        "info": 0,
        "secure": 1,
    }
    payload["manifest_analysis"]["manifest_summary"] = {
        "high": 0,
        "warning": 1,
        "info": 0,
        "secure": 1,
    }
    payload["code_analysis"]["summary"] = {"high": 1, "warning": 0, "info": 0}
    payload["network_security"]["network_summary"] = {
        "high": 1,
        "warning": 0,
        "info": 0,
    }
    return payload


def build_sonar_payload() -> dict[str, Any]:
    """Representative SonarQube issues export."""

    return {
        "issues": [
            {
                "rule": "java:S2068",
                "message": "Hard-coded credentials",
                "severity": "BLOCKER",
                "component": "demo:src/Login.java",
                "line": 42,
                "type": "VULNERABILITY",
                "tags": ["cwe", "owasp-a2"],
            },
            {
                "rule": "java:S1128",
                "message": "Remove this unused import.",
                "severity": "INFO",
                "component": "demo:src/Main.java",
                "type": "CODE_SMELL",
            },
            {
                "rule": "java:S3776",
                "message": "Cognitive Complexity is too high.",
                "severity": "MINOR",
                "component": "demo:src/Main.java",
                "line": 7,
            },
        ]
    }


@pytest.fixture
def mobsf_payload() -> dict[str, Any]:
    return build_mobsf_payload()


@pytest.fixture
def mobsf_payload_with_summaries() -> dict[str, Any]:
    return build_mobsf_payload_with_summaries()


@pytest.fixture
def sonar_payload() -> dict[str, Any]:
    return build_sonar_payload()
