from __future__ import annotations

import abc
import logging
from typing import Dict, Iterable, List

from .model import Scene, Story

logger = logging.getLogger(__name__)


class RepositoryError(RuntimeError):
    """Raised when a persistence operation cannot be completed."""


class StoryNotFoundError(RepositoryError):
    def __init__(self, story_id: str) -> None:
        super().__init__(f"Story not found: {story_id}")
        self.story_id = story_id


class SceneNotFoundError(RepositoryError):
    def __init__(self, scene_id: str) -> None:
        super().__init__(f"Scene not found: {scene_id}")
        self.scene_id = scene_id


class StoryRepository(abc.ABC):
    """Storage for stories and their scenes.

    Stories are returned with ``scenes`` loaded in ascending ``order``.
    Returned objects are copies; call a ``save_*`` method to persist edits.
    """

    @abc.abstractmethod
    def add_story(self, story: Story) -> Story: ...

    @abc.abstractmethod
    def get_story(self, story_id: str) -> Story: ...

    @abc.abstractmethod
    def list_stories(self) -> List[Story]: ...

    @abc.abstractmethod
    def save_story(self, story: Story) -> Story: ...

    @abc.abstractmethod
    def delete_story(self, story_id: str) -> None: ...

    @abc.abstractmethod
    def replace_scenes(self, story_id: str, scenes: Iterable[Scene]) -> List[Scene]: ...

    @abc.abstractmethod
    def scenes_for_story(self, story_id: str) -> List[Scene]: ...

    @abc.abstractmethod
    def get_scene(self, scene_id: str) -> Scene: ...

    @abc.abstractmethod
    def save_scene(self, scene: Scene) -> Scene: ...

    @abc.abstractmethod
    def delete_scene(self, scene_id: str) -> None: ...


class InMemoryStoryRepository(StoryRepository):
    def __init__(self) -> None:
        self._stories: Dict[str, Story] = {}
        self._scenes: Dict[str, Scene] = {}

    # Stories ----------------------------------------------------------

    def add_story(self, story: Story) -> Story:
        if story.id in self._stories:
            raise RepositoryError(f"Story already exists: {story.id}")
        scenes = self._checked_scenes(story.id, story.scenes)
        self._stories[story.id] = story.model_copy(update={"scenes": []}, deep=True)
        for scene in scenes:
            self._scenes[scene.id] = scene
        return self.get_story(story.id)

    def get_story(self, story_id: str) -> Story:
        stored = self._stories.get(story_id)
        if stored is None:
            raise StoryNotFoundError(story_id)
        story = stored.model_copy(deep=True)
        story.scenes = self.scenes_for_story(story_id)
        return story

    def list_stories(self) -> List[Story]:
        stories = [self.get_story(story_id) for story_id in self._stories]
        return sorted(stories, key=lambda story: story.created_at)

    def save_story(self, story: Story) -> Story:
        if story.id not in self._stories:
            raise StoryNotFoundError(story.id)
        # Scenes are owned by the scene methods; the scenes list is ignored here.
        self._stories[story.id] = story.model_copy(update={"scenes": []}, deep=True)
        return self.get_story(story.id)

    def delete_story(self, story_id: str) -> None:
        if self._stories.pop(story_id, None) is None:
            raise StoryNotFoundError(story_id)
        orphaned = [scene_id for scene_id, scene in self._scenes.items() if scene.story_id == story_id]
        for scene_id in orphaned:
            del self._scenes[scene_id]
        logger.info("Deleted story %s and %d scene(s)", story_id, len(orphaned))

    # Scenes -----------------------------------------------------------

    def replace_scenes(self, story_id: str, scenes: Iterable[Scene]) -> List[Scene]:
        if story_id not in self._stories:
            raise StoryNotFoundError(story_id)
        new_scenes = self._checked_scenes(story_id, scenes)
        self._scenes = {
            scene_id: scene for scene_id, scene in self._scenes.items() if scene.story_id != story_id
        }
        for scene in new_scenes:
            self._scenes[scene.id] = scene
        return self.scenes_for_story(story_id)

    def scenes_for_story(self, story_id: str) -> List[Scene]:
        scenes = [scene.model_copy(deep=True) for scene in self._scenes.values() if scene.story_id == story_id]
        return sorted(scenes, key=lambda scene: scene.order)

    def get_scene(self, scene_id: str) -> Scene:
        scene = self._scenes.get(scene_id)
        if scene is None:
            raise SceneNotFoundError(scene_id)
        return scene.model_copy(deep=True)

    def save_scene(self, scene: Scene) -> Scene:
        existing = self._scenes.get(scene.id)
        if existing is None:
            raise SceneNotFoundError(scene.id)
        if existing.story_id != scene.story_id or existing.order != scene.order:
            raise RepositoryError(f"Scene {scene.id} cannot change story or order")
        self._scenes[scene.id] = scene.model_copy(deep=True)
        return self.get_scene(scene.id)

    def delete_scene(self, scene_id: str) -> None:
        if self._scenes.pop(scene_id, None) is None:
            raise SceneNotFoundError(scene_id)

    @staticmethod
    def _checked_scenes(story_id: str, scenes: Iterable[Scene]) -> List[Scene]:
        new_scenes = [scene.model_copy(deep=True) for scene in scenes]
        orders = [scene.order for scene in new_scenes]
        if len(set(orders)) != len(orders):
            raise RepositoryError(f"Duplicate scene order for story {story_id}")
        if any(scene.story_id != story_id for scene in new_scenes):
            raise RepositoryError(f"Scene does not belong to story {story_id}")
        return new_scenes
