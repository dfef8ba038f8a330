"""
lupublish - Publishing pipeline for LUIS and QnA Maker resources of a bot project.

lupublish builds the language-understanding resources a bot declares and
makes the resulting LUIS applications servable:

- **Resource Location**: Resolve declared ``.lu``/``.qna`` resources against the project files
- **Compilation**: Drive the external LU build and read back the application ids
- **Account Resolution**: Find the bot's Azure prediction account
- **Assignment**: Bind that account to every compiled application, with bounded retry
- **Status Events**: Progress reported to an injected notifier

Quick Start:
    >>> from lupublish import LuisPublisher, load_publish_profile
    >>> from lupublish.pipeline import LoggingNotifier
    >>>
    >>> profile = load_publish_profile("profiles/dev.yaml")
    >>> publisher = LuisPublisher(profile, builder, notifier=LoggingNotifier())
    >>> result = await publisher.publish(project_path, files, lu_resources, qna_resources)
"""

__version__ = "0.1.0"
__author__ = "lupublish contributors"
__license__ = "MIT"

# Core exports for convenient imports
from lupublish.config import PublishProfile, load_publish_profile
from lupublish.pipeline import Pipeline, PipelineBuilder, PipelineContext, PipelineResult
from lupublish.pipeline.frames import FileInfo, Frame, ResourceReference
from lupublish.pipeline.processor import Processor
from lupublish.publisher import LuisPublisher, PublishResult

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Publishing
    "LuisPublisher",
    "PublishResult",
    "PublishProfile",
    "load_publish_profile",
    "FileInfo",
    "ResourceReference",
    # Core pipeline
    "Pipeline",
    "PipelineBuilder",
    "PipelineContext",
    "PipelineResult",
    "Processor",
    "Frame",
]
