"""Encore transcoding API payloads.

Only the fields the normalizer reads or writes are modelled; anything else in
Encore responses is ignored.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..helpers import parse_frame_rate


class EncoreStatus(str, Enum):
    """Encore job status."""

    NEW = "NEW"
    QUEUED = "QUEUED"
    IN_PROGRESS = "IN_PROGRESS"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


@dataclass
class EncoreInput:
    uri: str
    seek_to: float = 0
    copy_ts: bool = True
    media_type: str = "AudioVideo"

    def to_dict(self) -> dict[str, Any]:
        return {
            "uri": self.uri,
            "seekTo": self.seek_to,
            "copyTs": self.copy_ts,
            "type": self.media_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EncoreInput":
        return cls(
            uri=data.get("uri") or "",
            seek_to=data.get("seekTo") or 0,
            copy_ts=bool(data.get("copyTs", True)),
            media_type=data.get("type") or "AudioVideo",
        )


@dataclass
class VideoStream:
    codec: str = ""
    width: int = 0
    height: int = 0
    frame_rate: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VideoStream":
        return cls(
            codec=data.get("codec") or "",
            width=int(data.get("width") or 0),
            height=int(data.get("height") or 0),
            frame_rate=data.get("frameRate") or "",
        )


@dataclass
class EncoreOutput:
    media_type: str = ""
    format: str = ""
    file: str = ""
    file_size: int = 0
    overall_bitrate: int = 0
    video_streams: list[VideoStream] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EncoreOutput":
        return cls(
            media_type=data.get("type") or "",
            format=data.get("format") or "",
            file=data.get("file") or "",
            file_size=int(data.get("fileSize") or 0),
            overall_bitrate=int(data.get("overallBitrate") or 0),
            video_streams=[VideoStream.from_dict(v) for v in data.get("videoStreams") or []],
        )


@dataclass
class EncoreJob:
    """A transcode job, as submitted to and returned by Encore.

    ``external_id`` carries the creative key the job was created for.
    """

    profile: str
    output_folder: str
    base_name: str
    external_id: str = ""
    id: str = ""
    status: str = ""
    inputs: list[EncoreInput] = field(default_factory=list)
    outputs: list[EncoreOutput] = field(default_factory=list)
    progress_callback_uri: str = ""
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Submission payload; empty optional fields are left out."""
        data: dict[str, Any] = {
            "profile": self.profile,
            "outputFolder": self.output_folder,
            "baseName": self.base_name,
        }
        if self.id:
            data["id"] = self.id
        if self.external_id:
            data["externalId"] = self.external_id
        if self.status:
            data["status"] = self.status
        if self.inputs:
            data["inputs"] = [i.to_dict() for i in self.inputs]
        if self.progress_callback_uri:
            data["progressCallbackUri"] = self.progress_callback_uri
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EncoreJob":
        return cls(
            profile=data.get("profile") or "",
            output_folder=data.get("outputFolder") or "",
            base_name=data.get("baseName") or "",
            external_id=data.get("externalId") or "",
            id=data.get("id") or "",
            status=data.get("status") or "",
            inputs=[EncoreInput.from_dict(i) for i in data.get("inputs") or []],
            outputs=[EncoreOutput.from_dict(o) for o in data.get("output") or []],
            progress_callback_uri=data.get("progressCallbackUri") or "",
            message=data.get("message") or "",
        )

    def frame_rates(self) -> list[float]:
        """Distinct frame rates of all output video streams, ascending."""
        rates = {
            parse_frame_rate(stream.frame_rate)
            for output in self.outputs
            for stream in output.video_streams
            if stream.frame_rate
        }
        return sorted(rates)


@dataclass
class JobProgress:
    """Progress callback body posted by Encore."""

    job_id: str
    external_id: str = ""
    progress: int = 0
    status: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobProgress":
        return cls(
            job_id=data.get("jobId") or "",
            external_id=data.get("externalId") or "",
            progress=int(data.get("progress") or 0),
            status=data.get("status") or "",
        )


__all__ = [
    "EncoreStatus",
    "EncoreInput",
    "VideoStream",
    "EncoreOutput",
    "EncoreJob",
    "JobProgress",
]
