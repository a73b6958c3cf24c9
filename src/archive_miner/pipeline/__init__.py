"""Pipeline orchestration (:class:`~archive_miner.pipeline.runner.PipelineRunner`)."""
