"""Voice, image and video analysis over local media files."""

import asyncio
from typing import Any

from tuteliq_mcp import formatters
from tuteliq_mcp.client import TuteliqClient
from tuteliq_mcp.tool_registry import ToolDescriptor, ToolResult
from tuteliq_mcp.tools.helpers import (
    number,
    object_schema,
    optional_age,
    read_media_file,
    string,
    widget_hints,
)


class MediaTools:
    """Upload a file from disk and render the multimodal analysis."""

    def __init__(self, client: TuteliqClient) -> None:
        self.client = client

    async def analyze_voice(self, args: dict[str, Any]) -> ToolResult:
        data, filename = await asyncio.to_thread(read_media_file, args["file_path"])
        result = await self.client.analyze_voice(
            data,
            filename,
            analysis_type=args.get("analysis_type") or "all",
            language=args.get("language"),
            child_age=optional_age(args, "child_age"),
        )
        return ToolResult.for_tool("analyze_voice", result, formatters.format_voice(result))

    async def analyze_image(self, args: dict[str, Any]) -> ToolResult:
        data, filename = await asyncio.to_thread(read_media_file, args["file_path"])
        result = await self.client.analyze_image(
            data, filename, analysis_type=args.get("analysis_type") or "all"
        )
        return ToolResult.for_tool("analyze_image", result, formatters.format_image(result))

    async def analyze_video(self, args: dict[str, Any]) -> ToolResult:
        data, filename = await asyncio.to_thread(read_media_file, args["file_path"])
        result = await self.client.analyze_video(data, filename, age_group=args.get("age_group"))
        return ToolResult.for_tool("analyze_video", result, formatters.format_video_result(result))

    def descriptors(self) -> list[ToolDescriptor]:
        return [
            ToolDescriptor(
                name="analyze_voice",
                title="Analyze Voice",
                description=(
                    "Analyze an audio file for safety concerns. Transcribes the audio, then runs "
                    "safety analysis on the transcript. Supports mp3, wav, m4a, ogg, flac, "
                    "webm, mp4."
                ),
                input_schema=object_schema(
                    {
                        "file_path": string("Absolute path to the audio file on disk"),
                        "analysis_type": string(
                            "Type of analysis to run on the transcript (default: all)",
                            enum=["bullying", "unsafe", "grooming", "emotions", "all"],
                        ),
                        "child_age": number("Child age (used for grooming analysis)"),
                        "language": string('Language hint for transcription (e.g., "en", "es")'),
                    },
                    required=["file_path"],
                ),
                handler=self.analyze_voice,
                presentation_hints=widget_hints(
                    "Shows voice analysis results with transcript and safety findings",
                    "Transcribing and analyzing audio...",
                    "Voice analysis complete.",
                ),
            ),
            ToolDescriptor(
                name="analyze_image",
                title="Analyze Image",
                description=(
                    "Analyze an image for visual safety concerns and OCR text extraction. "
                    "Supports png, jpg, jpeg, gif, webp."
                ),
                input_schema=object_schema(
                    {
                        "file_path": string("Absolute path to the image file on disk"),
                        "analysis_type": string(
                            "Type of analysis to run on extracted text (default: all)",
                            enum=["bullying", "unsafe", "emotions", "all"],
                        ),
                    },
                    required=["file_path"],
                ),
                handler=self.analyze_image,
                presentation_hints=widget_hints(
                    "Shows image analysis results with visual and text safety findings",
                    "Analyzing image for safety concerns...",
                    "Image analysis complete.",
                ),
            ),
            ToolDescriptor(
                name="analyze_video",
                title="Analyze Video",
                description=(
                    "Analyze a video file for safety concerns. Extracts key frames and runs "
                    "safety classification. Supports mp4, mov, avi, webm, mkv."
                ),
                input_schema=object_schema(
                    {
                        "file_path": string("Absolute path to the video file on disk"),
                        "age_group": string(
                            'Age group for calibrated analysis (e.g., "child", "teen", "adult")'
                        ),
                    },
                    required=["file_path"],
                ),
                handler=self.analyze_video,
                presentation_hints=widget_hints(
                    "Shows video analysis results with timestamped safety findings",
                    "Analyzing video for safety concerns...",
                    "Video analysis complete.",
                ),
            ),
        ]
