"""
Mock transcript generator for testing and development.

Generates synthetic classroom transcripts from common teaching episodes.
"""

import random
from typing import Optional

from .models import RawEvent


# Common classroom episode templates: (label, min_seconds, max_seconds)
EPISODE_TEMPLATES = {
    "question_answer_feedback": {
        "description": "Teacher asks, a student answers, teacher responds",
        "steps": [
            ("教师提问", 3, 15),
            ("学生发言", 5, 40),
            ("教师反馈", 3, 20),
        ],
    },
    "lecture_then_question": {
        "description": "Lecture segment closed by a check question",
        "steps": [
            ("教师讲授", 30, 180),
            ("教师提问", 3, 12),
            ("课堂沉寂", 2, 10),
            ("学生发言", 5, 25),
        ],
    },
    "group_discussion": {
        "description": "Instruction, group discussion while the teacher patrols, report back",
        "steps": [
            ("教师指令", 5, 20),
            ("学生讨论", 40, 150),
            ("教师巡视", 20, 90),
            ("学生发言", 10, 40),
            ("教师反馈", 5, 25),
        ],
    },
    "board_work": {
        "description": "Teacher writes on the board while explaining",
        "steps": [
            ("教师讲授", 20, 90),
            ("教师板书", 15, 60),
            ("教师讲授", 20, 90),
        ],
    },
    "slide_change": {
        "description": "Technical operation followed by lecture",
        "steps": [
            ("技术操作", 5, 30),
            ("教师讲授", 30, 120),
        ],
    },
    "silent_question": {
        "description": "Question met with silence, teacher answers it",
        "steps": [
            ("教师提问", 3, 12),
            ("课堂沉寂", 10, 45),
            ("教师讲授", 20, 60),
        ],
    },
}

TEACHER_LINES = {
    "教师提问": ["这个结论是怎么得到的？", "谁能说说你的想法？", "为什么会这样？"],
    "教师讲授": ["我们先回顾一下上节课的内容。", "这里的关键是变量之间的关系。", "请大家注意这个公式。"],
    "教师反馈": ["很好，思路很清楚。", "还有补充吗？", "对，但是还不够完整。"],
    "教师指令": ["四人一组讨论五分钟。", "请打开课本第二十页。"],
}

STUDENT_LINES = ["我觉得是因为条件变了。", "可以用画图的方法。", "我们组认为答案是三。"]

NON_VERBAL = {"教师板书": "silent", "教师巡视": "silent", "课堂沉寂": "silent", "技术操作": "silent"}


class MockTranscriptGenerator:
    """Generates synthetic classroom transcripts for testing."""

    def __init__(self, seed: Optional[int] = None, prefix: str = "T01"):
        """
        Initialize the generator.

        Args:
            seed: Random seed for reproducibility
            prefix: Lesson prefix used in event ids
        """
        self.rng = random.Random(seed)
        self.prefix = prefix
        self._clock = 0

    def _text_for(self, label: str) -> str:
        if label in NON_VERBAL:
            return NON_VERBAL[label]
        if label in TEACHER_LINES:
            return "老师：" + self.rng.choice(TEACHER_LINES[label])
        if self.rng.random() < 0.1:
            return "inaudible"
        return "学生：" + self.rng.choice(STUDENT_LINES)

    def _emit(self, label: str, seconds: int) -> RawEvent:
        start = self._clock
        end = start + seconds
        self._clock = end
        return RawEvent(
            id=f"{self.prefix}_{start:04d}_{end:04d}",
            label=label,
            text=self._text_for(label),
        )

    def generate_episode(self, template_name: Optional[str] = None) -> list[RawEvent]:
        """
        Generate the events of one episode.

        Long steps are split into several consecutive utterances of the
        same label, as a transcriber would segment them.

        Args:
            template_name: Episode template (random if None)

        Returns:
            Ordered RawEvent list
        """
        if template_name is None:
            template_name = self.rng.choice(list(EPISODE_TEMPLATES.keys()))

        events = []
        for label, low, high in EPISODE_TEMPLATES[template_name]["steps"]:
            remaining = self.rng.randint(low, high)
            while remaining > 0:
                chunk = min(remaining, self.rng.randint(4, 30))
                events.append(self._emit(label, chunk))
                remaining -= chunk
        return events

    def generate_transcript(
        self,
        episodes: int,
        template_weights: Optional[dict[str, float]] = None,
    ) -> list[RawEvent]:
        """
        Generate a full lesson transcript.

        Args:
            episodes: Number of episodes
            template_weights: Probability weights for each template

        Returns:
            Ordered RawEvent list with contiguous timestamps
        """
        if template_weights is None:
            template_weights = {
                "question_answer_feedback": 0.30,
                "lecture_then_question": 0.20,
                "group_discussion": 0.15,
                "board_work": 0.15,
                "slide_change": 0.10,
                "silent_question": 0.10,
            }

        templates = list(template_weights.keys())
        weights = [template_weights[t] for t in templates]

        events = []
        for _ in range(episodes):
            template = self.rng.choices(templates, weights=weights)[0]
            events.extend(self.generate_episode(template))
        return events


def generate_sample_transcript(episodes: int = 40, seed: int = 42) -> list[RawEvent]:
    """
    Convenience function to generate a sample transcript.

    Args:
        episodes: Number of episodes
        seed: Random seed

    Returns:
        List of RawEvent
    """
    generator = MockTranscriptGenerator(seed=seed)
    return generator.generate_transcript(episodes)
