"""HTTP surface: health, model catalog and the server-side split endpoint."""

import os
import base64
import logging
import tempfile
from typing import Optional

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.responses import JSONResponse

from meeting_scribe.adapters.ffmpeg.audio import FFmpegAudioAdapter
from meeting_scribe.catalog import MODELS
from meeting_scribe.config import Config, get_config
from meeting_scribe.errors import ChunkingError
from meeting_scribe.models import ModelInfo, ModelList, SplitChunk, SplitResponse

logger = logging.getLogger(__name__)

CHUNK_MIME_TYPE = "audio/mp3"


def _model_list() -> ModelList:
    return ModelList(data=[
        ModelInfo(
            id=m.id,
            name=m.name,
            description=m.description,
            owned_by=m.provider,
            response_formats=list(m.response_formats),
            capabilities={
                "prompt": m.supports_prompt,
                "streaming": m.supports_streaming,
                "diarization": m.supports_diarization,
                "timestamps": m.supports_timestamps,
                "translation": m.supports_translation,
                "long_audio": m.handles_long_audio,
            },
        )
        for m in MODELS.values()
    ])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(cfg: Optional[Config] = None, audio: Optional[FFmpegAudioAdapter] = None) -> FastAPI:
    cfg = cfg or get_config()
    audio = audio or FFmpegAudioAdapter(temp_dir=cfg.temp_dir)

    app = FastAPI(title="Meeting Scribe")

    @app.get("/health")
    def health() -> dict:
        return {"status": "healthy", "ffmpeg": audio.is_available(), "config": cfg.as_dict()}

    @app.get("/v1/models", response_model=ModelList)
    def list_models() -> ModelList:
        return _model_list()

    @app.post("/api/split-audio", response_model=SplitResponse, response_model_exclude_none=True)
    def split_audio(
        file: Optional[UploadFile] = File(None),
        chunkDuration: float = Form(cfg.chunk_duration),
    ):
        if file is None:
            return _error(400, "No file provided")
        if chunkDuration <= 0:
            return _error(400, "chunkDuration must be positive")

        data = file.file.read()
        file_name = file.filename or "audio"
        logger.info(f"Split request: {file_name} ({len(data)} bytes), chunk duration {chunkDuration}s")

        try:
            with tempfile.TemporaryDirectory(dir=cfg.temp_dir) as work_dir:
                ext = os.path.splitext(file_name)[1] or ".mp3"
                input_path = os.path.join(work_dir, f"input{ext}")
                with open(input_path, "wb") as f:
                    f.write(data)

                duration = audio.probe_duration(input_path)
                if duration <= cfg.max_direct_duration:
                    logger.info(f"{file_name} is {duration:.1f}s, no chunking needed")
                    return SplitResponse(
                        needsChunking=False,
                        duration=duration,
                        totalChunks=1,
                        chunks=[SplitChunk(
                            index=0,
                            data=base64.b64encode(data).decode("ascii"),
                            mimeType=file.content_type or "audio/mpeg",
                        )],
                    )

                chunks = []
                for i, path in enumerate(audio.split_file(input_path, work_dir, chunkDuration)):
                    with open(path, "rb") as f:
                        chunks.append(SplitChunk(
                            index=i,
                            data=base64.b64encode(f.read()).decode("ascii"),
                            mimeType=CHUNK_MIME_TYPE,
                        ))
        except ChunkingError as e:
            logger.error(f"Split failed for {file_name}: {e}")
            return _error(500, str(e))

        logger.info(f"Split {file_name} ({duration:.1f}s) into {len(chunks)} chunks")
        return SplitResponse(needsChunking=True, duration=duration, totalChunks=len(chunks), chunks=chunks)

    return app
