from mock_client import BULLYING_RESULT, DETECTION_RESULT

from tuteliq_mcp import formatters


class TestHelpers:
    def test_percent(self) -> None:
        assert formatters.percent(0.78) == "78%"
        assert formatters.percent(1) == "100%"
        assert formatters.percent(None) == "n/a"

    def test_endpoint_label(self) -> None:
        assert formatters.endpoint_label("social_engineering") == "Social Engineering"

    def test_severity_bucket_edges(self) -> None:
        assert formatters.severity_bucket(0.3) == "low"
        assert formatters.severity_bucket(0.6) == "medium"
        assert formatters.severity_bucket(0.85) == "high"
        assert formatters.severity_bucket(0.9) == "critical"


class TestSafetyFormatters:
    def test_bullying_detected(self) -> None:
        text = formatters.format_bullying(BULLYING_RESULT)

        assert text.startswith("## ⚠️ Bullying Detected")
        assert "**Severity:** \U0001f534 High" in text
        assert "**Confidence:** 92%" in text
        assert "**Types:** exclusion, name_calling" in text
        assert "`flag_for_review`" in text

    def test_no_bullying_omits_types(self) -> None:
        text = formatters.format_bullying({"is_bullying": False, "severity": "low"})

        assert text.startswith("## ✅ No Bullying Detected")
        assert "**Types:**" not in text

    def test_grooming_flags(self) -> None:
        text = formatters.format_grooming(
            {"grooming_risk": "high", "flags": ["secrecy", "gifts"], "confidence": 0.8}
        )

        assert text.startswith("## ⚠️ Grooming Risk Detected")
        assert "- \U0001f6a9 secrecy" in text
        assert "- \U0001f6a9 gifts" in text

    def test_unsafe_clear(self) -> None:
        assert formatters.format_unsafe({"unsafe": False}).startswith("## ✅ Content is Safe")

    def test_analysis_lists_checks(self) -> None:
        text = formatters.format_analysis(
            {
                "risk_level": "medium",
                "risk_score": 0.5,
                "bullying": {"is_bullying": True},
                "unsafe": {"unsafe": False},
            }
        )

        assert "**Bullying Check:** ⚠️ Detected" in text
        assert "**Unsafe Content:** ✅ Clear" in text

    def test_missing_fields_do_not_raise(self) -> None:
        for render in (
            formatters.format_bullying,
            formatters.format_grooming,
            formatters.format_unsafe,
            formatters.format_analysis,
            formatters.format_detection_result,
            formatters.format_emotions,
            formatters.format_action_plan,
            formatters.format_report,
            formatters.format_multi_result,
            formatters.format_voice,
            formatters.format_image,
            formatters.format_video_result,
        ):
            assert render({}).startswith("## ")


class TestDetectionFormatter:
    def test_detected_result(self) -> None:
        text = formatters.format_detection_result(DETECTION_RESULT)

        assert text.startswith("## \U0001f534 Romance Scam Detected")
        assert "**Risk Score:** 78%" in text
        assert "**Categories:** love_bombing, financial_request" in text
        assert '- _"send me $500"_ - **financial_request** (weight: 0.70)' in text

    def test_not_detected(self) -> None:
        text = formatters.format_detection_result({"endpoint": "app_fraud", "detected": False})

        assert text.startswith("## ✅ No App Fraud Detected")

    def test_age_calibration(self) -> None:
        result = dict(
            DETECTION_RESULT,
            age_calibration={"applied": True, "age_group": "13-15", "multiplier": 1.3},
        )

        assert "**Age Calibration:** 13-15 (1.3x)" in formatters.format_detection_result(result)

    def test_multi_result(self) -> None:
        text = formatters.format_multi_result(
            {
                "summary": {
                    "overall_risk_level": "high",
                    "total_endpoints": 2,
                    "detected_count": 1,
                    "highest_risk": {"endpoint": "romance_scam", "risk_score": 0.8},
                },
                "cross_endpoint_modifier": 1.25,
                "results": [DETECTION_RESULT, {"endpoint": "app_fraud", "detected": False}],
            }
        )

        assert "**Highest Risk:** romance_scam (80%)" in text
        assert "**Cross-Endpoint Modifier:** 1.25x" in text
        assert "### \U0001f534 romance_scam" in text
        assert "### ✅ app_fraud" in text


class TestGuidanceFormatters:
    def test_emotion_scores_sorted_descending(self) -> None:
        text = formatters.format_emotions(
            {"emotion_scores": {"joy": 0.1, "fear": 0.6}, "trend": "worsening"}
        )

        assert text.index("fear: 60%") < text.index("joy: 10%")
        assert "\U0001f4c9 Worsening" in text

    def test_action_plan_numbers_steps(self) -> None:
        text = formatters.format_action_plan({"steps": ["Listen", "Document"]})

        assert "1. Listen\n2. Document" in text

    def test_report(self) -> None:
        text = formatters.format_report(
            {"risk_level": "high", "recommended_next_steps": ["Call school"]}
        )

        assert "**Risk Level:** \U0001f534 High" in text
        assert "1. Call school" in text


class TestMediaFormatters:
    def test_voice_segments_are_capped(self) -> None:
        segments = [{"start": i, "end": i + 1, "text": f"seg {i}"} for i in range(25)]

        text = formatters.format_voice({"transcription": {"segments": segments}})

        assert "seg 19" in text
        assert "seg 20" not in text
        assert "_...and 5 more segments_" in text

    def test_image_ocr_block_only_when_text_present(self) -> None:
        with_text = formatters.format_image({"vision": {"extracted_text": "hello"}})
        without_text = formatters.format_image({"vision": {}})

        assert "### Extracted Text (OCR)\nhello" in with_text
        assert "Extracted Text" not in without_text

    def test_video_findings(self) -> None:
        text = formatters.format_video_result(
            {
                "frames_analyzed": 4,
                "safety_findings": [
                    {
                        "timestamp": 2.5,
                        "frame_index": 3,
                        "description": "weapon visible",
                        "categories": ["violence"],
                        "severity": 0.9,
                    }
                ],
            }
        )

        assert "`2.5s` (frame 3) ⛔ weapon visible" in text
        assert "Severity: 90%" in text

    def test_video_without_findings(self) -> None:
        assert "_No safety findings._" in formatters.format_video_result({})


class TestWebhookFormatters:
    def test_empty_list(self) -> None:
        assert formatters.format_webhook_list({"webhooks": []}) == "No webhooks configured."

    def test_list_marks_active(self) -> None:
        text = formatters.format_webhook_list(
            {
                "webhooks": [
                    {"id": "wh_1", "name": "alerts", "url": "https://x.test", "is_active": True},
                    {"id": "wh_2", "name": "muted", "url": "https://y.test", "is_active": False},
                ]
            }
        )

        assert "- \U0001f7e2 **alerts** - `https://x.test`" in text
        assert "- ⚪ **muted**" in text

    def test_created_shows_secret(self) -> None:
        text = formatters.format_webhook_created({"id": "wh_1", "secret": "s3cret"})

        assert "`s3cret`" in text

    def test_failed_test(self) -> None:
        text = formatters.format_webhook_test({"success": False, "error": "timeout"})

        assert text.startswith("## ❌ Webhook Test")
        assert "**Error:** timeout" in text

    def test_deleted(self) -> None:
        assert "`wh_9`" in formatters.format_webhook_deleted("wh_9")
