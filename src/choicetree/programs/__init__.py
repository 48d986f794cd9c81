"""Example collaborators: programs the exploration engine can drive."""

from choicetree.programs.actors import ActorOutcome, ActorProgram
from choicetree.programs.file_spec import ActorProgramFileSpec

__all__ = ["ActorOutcome", "ActorProgram", "ActorProgramFileSpec"]
