"""
Pipeline Builder Factory for lupublish.

Creates the pre-configured publish pipeline.

Architecture:
    PublishRequest → Resource Locator → Compiler → Account Resolver → Assignment
                                                         |
                                               (no compiled apps)
                                                         |
                                                  PublishCompleted
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .executor import Pipeline, PipelineBuilder
from .processors import (
    AccountResolverProcessor,
    AssignmentProcessor,
    CompilerProcessor,
    ResourceLocatorProcessor,
)
from .retry import RETRY_ONCE

if TYPE_CHECKING:
    from lupublish.integrations.luis import LuisAuthoringClient

    from .processors import LuBuilder
    from .retry import RetryPolicy

logger = logging.getLogger(__name__)


def create_publish_pipeline(
    builder: LuBuilder,
    client: LuisAuthoringClient,
    *,
    retry_policy: RetryPolicy = RETRY_ONCE,
    max_concurrency: int = 1,
) -> Pipeline:
    """
    Create the LUIS/QnA publish pipeline.

    Args:
        builder: External LU compiler
        client: LUIS authoring client for account listing and assignment
        retry_policy: Retry policy for control-plane calls
        max_concurrency: Parallel assignment workers

    Returns:
        Configured Pipeline
    """
    pipeline = (
        PipelineBuilder()
        .add(ResourceLocatorProcessor())
        .add(CompilerProcessor(builder))
        .add(AccountResolverProcessor(client, retry_policy=retry_policy))
        .add(
            AssignmentProcessor(
                client,
                retry_policy=retry_policy,
                max_concurrency=max_concurrency,
            )
        )
        .build()
    )
    logger.debug(f"Created publish pipeline: {pipeline.processor_names}")
    return pipeline
