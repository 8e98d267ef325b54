"""Video publish worker: transcode, upload and persist one source video."""
