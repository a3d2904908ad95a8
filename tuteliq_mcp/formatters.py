"""Markdown renderings of Tuteliq API results.

Every formatter takes the decoded JSON result and tolerates missing optional
fields, falling back to neutral markers.
"""

from typing import Any

from tuteliq_mcp.constants import MAX_VOICE_SEGMENTS

SEVERITY_EMOJI: dict[str, str] = {
    "low": "\U0001f7e1",
    "medium": "\U0001f7e0",
    "high": "\U0001f534",
    "critical": "⛔",
}

RISK_EMOJI: dict[str, str] = {
    "safe": "✅",
    "none": "✅",
    **SEVERITY_EMOJI,
}

TREND_EMOJI: dict[str, str] = {
    "improving": "\U0001f4c8",
    "stable": "➡️",
    "worsening": "\U0001f4c9",
}

NEUTRAL = "⚪"
CLEAR = "✅"
WARNING = "⚠️"
FAILED = "❌"


def percent(value: Any) -> str:
    try:
        return f"{float(value) * 100:.0f}%"
    except (TypeError, ValueError):
        return "n/a"


def capitalize(value: Any) -> str:
    text = str(value or "")
    return text[:1].upper() + text[1:]


def endpoint_label(endpoint: str) -> str:
    """``social_engineering`` -> ``Social Engineering``."""
    return " ".join(word[:1].upper() + word[1:] for word in endpoint.split("_"))


def severity_bucket(score: float) -> str:
    if score <= 0.3:
        return "low"
    if score <= 0.6:
        return "medium"
    if score <= 0.85:
        return "high"
    return "critical"


def _join(*blocks: str) -> str:
    """Join blocks with blank lines, dropping empty optional ones."""
    return "\n\n".join(block.strip("\n") for block in blocks if block and block.strip()).strip()


def _verdict(flag: Any) -> str:
    return f"{WARNING} Detected" if flag else f"{CLEAR} Clear"


def _rationale_and_action(result: dict[str, Any]) -> str:
    return _join(
        f"### Rationale\n{result.get('rationale', '')}",
        f"### Recommended Action\n`{result.get('recommended_action', '')}`",
    )


def format_bullying(result: dict[str, Any]) -> str:
    severity = result.get("severity", "")
    detected = bool(result.get("is_bullying"))
    header = f"## {WARNING} Bullying Detected" if detected else f"## {CLEAR} No Bullying Detected"
    types = ", ".join(result.get("bullying_type") or [])
    return _join(
        header,
        f"**Severity:** {SEVERITY_EMOJI.get(severity, NEUTRAL)} {capitalize(severity)}\n"
        f"**Confidence:** {percent(result.get('confidence'))}\n"
        f"**Risk Score:** {percent(result.get('risk_score'))}",
        f"**Types:** {types}" if detected and types else "",
        _rationale_and_action(result),
    )


def format_grooming(result: dict[str, Any]) -> str:
    risk = result.get("grooming_risk", "none")
    header = (
        f"## {CLEAR} No Grooming Detected"
        if risk == "none"
        else f"## {WARNING} Grooming Risk Detected"
    )
    flags = result.get("flags") or []
    flag_lines = "\n".join(f"- \U0001f6a9 {flag}" for flag in flags)
    return _join(
        header,
        f"**Risk Level:** {RISK_EMOJI.get(risk, NEUTRAL)} {capitalize(risk)}\n"
        f"**Confidence:** {percent(result.get('confidence'))}\n"
        f"**Risk Score:** {percent(result.get('risk_score'))}",
        f"**Warning Flags:**\n{flag_lines}" if flags else "",
        _rationale_and_action(result),
    )


def format_unsafe(result: dict[str, Any]) -> str:
    severity = result.get("severity", "")
    unsafe = bool(result.get("unsafe"))
    header = f"## {WARNING} Unsafe Content Detected" if unsafe else f"## {CLEAR} Content is Safe"
    categories = "\n".join(f"- {WARNING} {c}" for c in result.get("categories") or [])
    return _join(
        header,
        f"**Severity:** {SEVERITY_EMOJI.get(severity, NEUTRAL)} {capitalize(severity)}\n"
        f"**Confidence:** {percent(result.get('confidence'))}\n"
        f"**Risk Score:** {percent(result.get('risk_score'))}",
        f"**Categories:**\n{categories}" if unsafe and categories else "",
        _rationale_and_action(result),
    )


def format_analysis(result: dict[str, Any]) -> str:
    level = result.get("risk_level", "")
    checks: list[str] = []
    if result.get("bullying"):
        checks.append(f"**Bullying Check:** {_verdict(result['bullying'].get('is_bullying'))}")
    if result.get("unsafe"):
        checks.append(f"**Unsafe Content:** {_verdict(result['unsafe'].get('unsafe'))}")
    return _join(
        "## Safety Analysis Results",
        f"**Overall Risk:** {RISK_EMOJI.get(level, NEUTRAL)} {capitalize(level)}\n"
        f"**Risk Score:** {percent(result.get('risk_score'))}",
        f"### Summary\n{result.get('summary', '')}",
        f"### Recommended Action\n`{result.get('recommended_action', '')}`",
        "---",
        "\n".join(checks),
    )


def format_detection_result(result: dict[str, Any]) -> str:
    """Shared rendering for the harm-detection endpoint family."""
    level = result.get("level", "")
    label = endpoint_label(str(result.get("endpoint", "detection")))
    header = (
        f"## {RISK_EMOJI.get(level, NEUTRAL)} {label} Detected"
        if result.get("detected")
        else f"## {CLEAR} No {label} Detected"
    )

    categories = result.get("categories") or []
    evidence = result.get("evidence") or []
    messages = result.get("message_analysis") or []
    calibration = result.get("age_calibration") or {}

    summary = [
        f"**Risk Score:** {percent(result.get('risk_score'))}",
        f"**Level:** {level}",
        f"**Confidence:** {percent(result.get('confidence'))}",
    ]
    if categories:
        summary.append(f"**Categories:** {', '.join(_tag(c) for c in categories)}")

    evidence_block = ""
    if evidence:
        evidence_block = "### Evidence\n" + "\n".join(
            f"- _\"{e.get('text', '')}\"_ - **{e.get('tactic', '')}** "
            f"(weight: {float(e.get('weight', 0)):.2f})"
            for e in evidence
        )

    messages_block = ""
    if messages:
        lines = []
        for m in messages:
            flags = m.get("flags") or []
            suffix = f" [{', '.join(flags)}]" if flags else ""
            lines.append(
                f"- **Message {m.get('message_index')}** "
                f"(risk: {percent(m.get('risk_score'))}) - {m.get('summary', '')}{suffix}"
            )
        messages_block = "### Message Analysis\n" + "\n".join(lines)

    calibration_block = ""
    if calibration.get("applied"):
        calibration_block = (
            f"**Age Calibration:** {calibration.get('age_group')} "
            f"({calibration.get('multiplier')}x)"
        )

    return _join(
        header,
        "\n".join(summary),
        _rationale_and_action(result),
        evidence_block,
        messages_block,
        calibration_block,
    )


def _tag(category: Any) -> str:
    if isinstance(category, dict):
        return str(category.get("tag", ""))
    return str(category)


def format_emotions(result: dict[str, Any]) -> str:
    trend = result.get("trend", "stable")
    scores = sorted(
        (result.get("emotion_scores") or {}).items(), key=lambda item: item[1], reverse=True
    )
    score_lines = "\n".join(f"- {emotion}: {percent(score)}" for emotion, score in scores)
    return _join(
        "## Emotion Analysis",
        f"**Dominant Emotions:** {', '.join(result.get('dominant_emotions') or [])}\n"
        f"**Trend:** {TREND_EMOJI.get(trend, TREND_EMOJI['stable'])} {capitalize(trend)}",
        f"### Emotion Scores\n{score_lines}",
        f"### Summary\n{result.get('summary', '')}",
        f"### Recommended Follow-up\n{result.get('recommended_followup', '')}",
    )


def format_action_plan(result: dict[str, Any]) -> str:
    details = [f"**Audience:** {result.get('audience', '')}", f"**Tone:** {result.get('tone', '')}"]
    if result.get("reading_level"):
        details.append(f"**Reading Level:** {result['reading_level']}")
    steps = "\n".join(f"{i}. {step}" for i, step in enumerate(result.get("steps") or [], start=1))
    return _join("## Action Plan", "\n".join(details), f"### Steps\n{steps}")


def format_report(result: dict[str, Any]) -> str:
    level = result.get("risk_level", "")
    categories = "\n".join(f"- {c}" for c in result.get("categories") or [])
    steps = "\n".join(
        f"{i}. {step}" for i, step in enumerate(result.get("recommended_next_steps") or [], start=1)
    )
    return _join(
        "## \U0001f4cb Incident Report",
        f"**Risk Level:** {RISK_EMOJI.get(level, NEUTRAL)} {capitalize(level)}",
        f"### Summary\n{result.get('summary', '')}",
        f"### Categories\n{categories}",
        f"### Recommended Next Steps\n{steps}",
    )


def format_multi_result(result: dict[str, Any]) -> str:
    summary = result.get("summary") or {}
    overall = summary.get("overall_risk_level", "")
    highest = summary.get("highest_risk") or {}

    lines = [
        f"**Overall Risk:** {RISK_EMOJI.get(overall, NEUTRAL)} {overall}",
        f"**Endpoints Analyzed:** {summary.get('total_endpoints', 0)}",
        f"**Threats Detected:** {summary.get('detected_count', 0)}",
        f"**Highest Risk:** {highest.get('endpoint', 'n/a')} "
        f"({percent(highest.get('risk_score', 0))})",
    ]
    modifier = result.get("cross_endpoint_modifier")
    if modifier:
        lines.append(f"**Cross-Endpoint Modifier:** {float(modifier):.2f}x")

    sections = []
    for r in result.get("results") or []:
        detected = bool(r.get("detected"))
        emoji = RISK_EMOJI.get(r.get("level", ""), NEUTRAL) if detected else CLEAR
        categories = r.get("categories") or []
        sections.append(
            _join(
                f"### {emoji} {r.get('endpoint', '')}\n"
                f"**Detected:** {'Yes' if detected else 'No'} | "
                f"**Risk:** {percent(r.get('risk_score'))} | **Level:** {r.get('level', '')}",
                f"**Categories:** {', '.join(_tag(c) for c in categories)}" if categories else "",
                str(r.get("rationale", "")),
            ).replace("\n\n", "\n")
        )

    return _join(
        "## Multi-Endpoint Analysis\n\n" + "\n".join(lines),
        "---",
        "\n\n".join(sections),
    )


def format_voice(result: dict[str, Any]) -> str:
    severity = result.get("overall_severity", "")
    transcription = result.get("transcription") or {}
    segments = transcription.get("segments") or []
    segment_lines = [
        f"`{float(s.get('start', 0)):.1f}s-{float(s.get('end', 0)):.1f}s` {s.get('text', '')}"
        for s in segments[:MAX_VOICE_SEGMENTS]
    ]
    if len(segments) > MAX_VOICE_SEGMENTS:
        segment_lines.append(f"_...and {len(segments) - MAX_VOICE_SEGMENTS} more segments_")

    analysis = result.get("analysis") or {}
    analysis_lines = []
    if analysis.get("bullying"):
        b = analysis["bullying"]
        analysis_lines.append(
            f"**Bullying:** {_verdict(b.get('is_bullying'))} ({percent(b.get('risk_score'))})"
        )
    if analysis.get("unsafe"):
        u = analysis["unsafe"]
        analysis_lines.append(
            f"**Unsafe:** {_verdict(u.get('unsafe'))} ({percent(u.get('risk_score'))})"
        )
    if analysis.get("grooming"):
        g = analysis["grooming"]
        risk = g.get("grooming_risk", "none")
        verdict = f"{WARNING} {risk}" if risk != "none" else f"{CLEAR} Clear"
        analysis_lines.append(f"**Grooming:** {verdict} ({percent(g.get('risk_score'))})")
    if analysis.get("emotions"):
        e = analysis["emotions"]
        trend = e.get("trend", "")
        analysis_lines.append(
            f"**Emotions:** {', '.join(e.get('dominant_emotions') or [])} "
            f"({TREND_EMOJI.get(trend, '')} {trend})"
        )

    return _join(
        "## \U0001f399️ Voice Analysis",
        f"**Overall Severity:** {SEVERITY_EMOJI.get(severity, CLEAR)} {severity}\n"
        f"**Overall Risk Score:** {percent(result.get('overall_risk_score'))}\n"
        f"**Language:** {transcription.get('language', 'unknown')}\n"
        f"**Duration:** {float(transcription.get('duration', 0)):.1f}s",
        f"### Transcript\n{transcription.get('text', '')}",
        "### Timestamped Segments\n" + "\n".join(segment_lines),
        "### Analysis Results\n" + "\n".join(analysis_lines),
    )


def format_image(result: dict[str, Any]) -> str:
    severity = result.get("overall_severity", "")
    vision = result.get("vision") or {}
    visual_severity = vision.get("visual_severity", "")
    visual_categories = vision.get("visual_categories") or []

    vision_lines = [
        f"**Description:** {vision.get('visual_description', '')}",
        f"**Visual Severity:** {SEVERITY_EMOJI.get(visual_severity, CLEAR)} {visual_severity}",
        f"**Visual Confidence:** {percent(vision.get('visual_confidence'))}",
        f"**Contains Text:** {'Yes' if vision.get('contains_text') else 'No'}",
        f"**Contains Faces:** {'Yes' if vision.get('contains_faces') else 'No'}",
    ]
    if visual_categories:
        vision_lines.append(f"**Visual Categories:** {', '.join(visual_categories)}")

    text_analysis = result.get("text_analysis") or {}
    text_lines = []
    if text_analysis.get("bullying"):
        b = text_analysis["bullying"]
        text_lines.append(
            f"**Bullying:** {_verdict(b.get('is_bullying'))} ({percent(b.get('risk_score'))})"
        )
    if text_analysis.get("unsafe"):
        u = text_analysis["unsafe"]
        text_lines.append(
            f"**Unsafe:** {_verdict(u.get('unsafe'))} ({percent(u.get('risk_score'))})"
        )
    if text_analysis.get("emotions"):
        emotions = ", ".join(text_analysis["emotions"].get("dominant_emotions") or [])
        text_lines.append(f"**Emotions:** {emotions}")

    extracted = vision.get("extracted_text")
    return _join(
        "## \U0001f5bc️ Image Analysis",
        f"**Overall Severity:** {SEVERITY_EMOJI.get(severity, CLEAR)} {severity}\n"
        f"**Overall Risk Score:** {percent(result.get('overall_risk_score'))}",
        "### Vision Results\n" + "\n".join(vision_lines),
        f"### Extracted Text (OCR)\n{extracted}" if extracted else "",
        "### Text Analysis Results\n" + "\n".join(text_lines) if text_lines else "",
    )


def format_video_result(result: dict[str, Any]) -> str:
    severity = result.get("overall_severity", "")
    findings = result.get("safety_findings") or []
    if findings:
        finding_lines = []
        for f in findings:
            score = float(f.get("severity", 0))
            finding_lines.append(
                f"- `{float(f.get('timestamp', 0)):.1f}s` (frame {f.get('frame_index')}) "
                f"{SEVERITY_EMOJI[severity_bucket(score)]} {f.get('description', '')}\n"
                f"  Categories: {', '.join(f.get('categories') or [])} | "
                f"Severity: {percent(score)}"
            )
        findings_block = "\n".join(finding_lines)
    else:
        findings_block = "_No safety findings._"

    return _join(
        "## \U0001f3ac Video Analysis",
        f"**Overall Severity:** {SEVERITY_EMOJI.get(severity, CLEAR)} {severity}\n"
        f"**Overall Risk Score:** {percent(result.get('overall_risk_score'))}\n"
        f"**Frames Analyzed:** {result.get('frames_analyzed', 0)}",
        f"### Safety Findings\n{findings_block}",
    )


def format_webhook_list(result: dict[str, Any]) -> str:
    webhooks = result.get("webhooks") or []
    if not webhooks:
        return "No webhooks configured."
    lines = [
        f"- {_active_marker(w.get('is_active'))} **{w.get('name', '')}** - `{w.get('url', '')}`\n"
        f"  Events: {', '.join(w.get('events') or [])} _({w.get('id', '')})_"
        for w in webhooks
    ]
    return "## Webhooks\n\n" + "\n".join(lines)


def _active_marker(active: Any) -> str:
    return "\U0001f7e2" if active else NEUTRAL


def format_webhook_created(result: dict[str, Any]) -> str:
    return _join(
        f"## {CLEAR} Webhook Created",
        f"**ID:** {result.get('id', '')}\n"
        f"**Name:** {result.get('name', '')}\n"
        f"**URL:** {result.get('url', '')}\n"
        f"**Events:** {', '.join(result.get('events') or [])}",
        f"{WARNING} **Secret (save this, it is shown only once):**\n`{result.get('secret', '')}`",
    )


def format_webhook_updated(result: dict[str, Any]) -> str:
    active = f"{_active_marker(True)} Yes" if result.get("is_active") else f"{NEUTRAL} No"
    return _join(
        f"## {CLEAR} Webhook Updated",
        f"**ID:** {result.get('id', '')}\n**Name:** {result.get('name', '')}\n**Active:** {active}",
    )


def format_webhook_deleted(webhook_id: str) -> str:
    return f"## {CLEAR} Webhook Deleted\n\nWebhook `{webhook_id}` has been permanently deleted."


def format_webhook_test(result: dict[str, Any]) -> str:
    success = bool(result.get("success"))
    lines = [
        f"**Success:** {'true' if success else 'false'}",
        f"**Status Code:** {result.get('status_code')}",
        f"**Latency:** {result.get('latency_ms')}ms",
    ]
    if result.get("error"):
        lines.append(f"**Error:** {result['error']}")
    return _join(f"## {CLEAR if success else FAILED} Webhook Test", "\n".join(lines))


def format_webhook_secret(result: dict[str, Any]) -> str:
    return _join(
        f"## {CLEAR} Secret Regenerated",
        "The old secret has been invalidated.",
        f"{WARNING} **New Secret (save this, it is shown only once):**\n"
        f"`{result.get('secret', '')}`",
    )
