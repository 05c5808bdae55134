"""
Deterministic local item generator.

Used by the controller to top up a short (or failed) bank response. The
same filter, count and start offset always produce the same items, so a
session's item set is reproducible without network access.
"""

from __future__ import annotations

from prepdeck.engine.models import Difficulty, Item, ProblemCase, SessionKind

from .provider import ItemFilter

MCQ_CATEGORIES = ["Algorithms", "Data Structures", "System Design", "OOP", "Databases"]
DIFFICULTY_CYCLE = [Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD]
MCQ_COMPANIES = ["Google", "Microsoft", "Amazon", "Meta", "Apple"]

CODING_PROBLEMS: list[dict] = [
    {
        "title": "Two Sum",
        "category": "Array",
        "difficulty": Difficulty.EASY,
        "description": "Return indices of the two numbers in `nums` that add up to `target`.",
        "test_cases": [
            ({"nums": [2, 7, 11, 15], "target": 9}, [0, 1]),
            ({"nums": [3, 2, 4], "target": 6}, [1, 2]),
        ],
        "hints": [
            "Think about using a hash table to store numbers you've seen before.",
            "For each number, compute the complement needed to reach the target.",
        ],
    },
    {
        "title": "Valid Parentheses",
        "category": "Stack",
        "difficulty": Difficulty.EASY,
        "description": "Decide whether a string of brackets is balanced and correctly nested.",
        "test_cases": [("()[]{}", True), ("(]", False), ("([)]", False)],
        "hints": ["Push opening brackets and pop on every closing one."],
    },
    {
        "title": "Reverse Linked List",
        "category": "Linked List",
        "difficulty": Difficulty.EASY,
        "description": "Reverse a singly linked list and return the new head.",
        "test_cases": [([1, 2, 3, 4, 5], [5, 4, 3, 2, 1]), ([], [])],
        "hints": ["Track previous, current and next pointers while walking the list."],
    },
    {
        "title": "Merge Intervals",
        "category": "Sorting",
        "difficulty": Difficulty.MEDIUM,
        "description": "Merge all overlapping intervals and return the non-overlapping result.",
        "test_cases": [
            ([[1, 3], [2, 6], [8, 10], [15, 18]], [[1, 6], [8, 10], [15, 18]]),
            ([[1, 4], [4, 5]], [[1, 5]]),
        ],
        "hints": ["Sort by start, then extend the last merged interval while they overlap."],
    },
    {
        "title": "LRU Cache",
        "category": "Design",
        "difficulty": Difficulty.HARD,
        "description": "Design a fixed-capacity cache with O(1) get and put that evicts the least recently used key.",
        "test_cases": [
            (
                {"capacity": 2, "ops": [["put", 1, 1], ["put", 2, 2], ["get", 1], ["put", 3, 3], ["get", 2]]},
                [None, None, 1, None, -1],
            ),
        ],
        "hints": ["Combine a hash map with a doubly linked list."],
    },
]

INTERVIEW_QUESTIONS: dict[str, list[tuple[str, str, int]]] = {
    "technical": [
        (
            "Explain the difference between var, let, and const in JavaScript.",
            "Focus on scope, hoisting, and mutability differences.",
            3,
        ),
        (
            "How would you optimize a slow database query?",
            "Discuss indexing, query optimization, and database design.",
            4,
        ),
        (
            "Explain the concept of microservices architecture.",
            "Cover benefits, challenges, and when to use microservices.",
            5,
        ),
        (
            "What is the time complexity of common sorting algorithms?",
            "Compare bubble sort, merge sort, and quick sort.",
            3,
        ),
    ],
    "behavioral": [
        (
            "Tell me about a time when you had to work with a difficult team member.",
            "Use the STAR method: Situation, Task, Action, Result.",
            4,
        ),
        (
            "Describe a challenging project you worked on and how you overcame obstacles.",
            "Focus on problem-solving skills and persistence.",
            5,
        ),
        (
            "How do you handle tight deadlines and pressure?",
            "Provide specific examples and strategies you use.",
            3,
        ),
        (
            "Tell me about a time you had to learn a new technology quickly.",
            "Highlight your learning process and adaptability.",
            4,
        ),
    ],
    "situational": [
        (
            "How would you handle a situation where you disagree with your manager's technical decision?",
            "Show respect while presenting your viewpoint professionally.",
            3,
        ),
        (
            "What would you do if you discovered a critical bug in production?",
            "Discuss immediate response, communication, and prevention.",
            4,
        ),
        (
            "How would you approach mentoring a junior developer?",
            "Focus on patience, teaching methods, and knowledge sharing.",
            4,
        ),
    ],
}


class FallbackGenerator:
    """Builds placeholder items for any kind, honoring filters where it can."""

    def generate(self, item_filter: ItemFilter, count: int, start: int = 0) -> list[Item]:
        """
        Generate ``count`` items.

        Args:
            item_filter: Kind plus optional category/difficulty/company
            count: Number of items wanted; always met exactly
            start: Offset into the generated sequence, so top-ups continue
                where an earlier batch stopped
        """
        if count <= 0:
            return []
        builders = {
            SessionKind.MCQ: self._mcq,
            SessionKind.CODING: self._coding,
            SessionKind.INTERVIEW: self._interview,
        }
        build = builders[item_filter.kind]
        return [build(item_filter, n) for n in range(start, start + count)]

    def _mcq(self, item_filter: ItemFilter, n: int) -> Item:
        category = item_filter.category or MCQ_CATEGORIES[n % len(MCQ_CATEGORIES)]
        difficulty = item_filter.difficulty or DIFFICULTY_CYCLE[n % len(DIFFICULTY_CYCLE)]
        company = item_filter.company or MCQ_COMPANIES[n % len(MCQ_COMPANIES)]
        return Item(
            id=f"fallback-mcq-{n}",
            kind=SessionKind.MCQ,
            prompt=f"Sample question {n + 1} about {category} ({difficulty.value})",
            category=category,
            difficulty=difficulty,
            company=company,
            estimated_seconds=90,
            options=(
                f"Incorrect option 1 about {category}",
                f"Incorrect option 2 about {category}",
                f"Incorrect option 3 about {category}",
                f"Correct answer for {category}",
            ),
            correct_index=3,
            explanation=(
                f"The correct answer demonstrates understanding of core {category} concepts."
            ),
        )

    def _coding(self, item_filter: ItemFilter, n: int) -> Item:
        catalog = [
            p for p in CODING_PROBLEMS
            if (not item_filter.category or p["category"].lower() == item_filter.category.lower())
            and (not item_filter.difficulty or p["difficulty"] == item_filter.difficulty)
        ] or CODING_PROBLEMS
        problem = catalog[n % len(catalog)]
        return Item(
            id=f"fallback-coding-{n}",
            kind=SessionKind.CODING,
            prompt=f"{problem['title']}: {problem['description']}",
            category=problem["category"],
            difficulty=problem["difficulty"],
            company=item_filter.company,
            estimated_seconds=900,
            test_cases=tuple(ProblemCase(input=i, expected=e) for i, e in problem["test_cases"]),
            hints=tuple(problem["hints"]),
        )

    def _interview(self, item_filter: ItemFilter, n: int) -> Item:
        if item_filter.category and item_filter.category.lower() in INTERVIEW_QUESTIONS:
            kinds = [item_filter.category.lower()]
        else:
            kinds = list(INTERVIEW_QUESTIONS)
        # Round-robin across question types
        question_type = kinds[n % len(kinds)]
        bank = INTERVIEW_QUESTIONS[question_type]
        question, tips, minutes = bank[(n // len(kinds)) % len(bank)]
        return Item(
            id=f"fallback-interview-{n}",
            kind=SessionKind.INTERVIEW,
            prompt=question,
            category=question_type,
            difficulty=item_filter.difficulty or Difficulty.MEDIUM,
            company=item_filter.company,
            estimated_seconds=minutes * 60,
            tips=tips,
        )
