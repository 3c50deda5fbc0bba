from .generator_node import code_generator, generate_code
from .planner_node import plan_scenes, scene_planner
from .renderer_node import render_video, video_renderer
from .validator_node import code_validator, validate_code

__all__ = [
    "code_generator",
    "code_validator",
    "generate_code",
    "plan_scenes",
    "render_video",
    "scene_planner",
    "validate_code",
    "video_renderer",
]
