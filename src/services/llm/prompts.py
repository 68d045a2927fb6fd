from typing import Sequence

from src.schemas.generation import GradingInput

JSON_ONLY_INSTRUCTION = "You respond only with valid JSON. No markdown. No explanations."

CHAT_SYSTEM_PROMPT = (
    "You are an AI Study Buddy: friendly, helpful, and educational.\n"
    "Respond clearly, naturally, and stay on topic using the conversation history."
)


class GenerationPromptBuilder:
    """Builds the fixed instruction templates sent to the generative model."""

    def flashcards(self, count: int, request: str) -> str:
        return f"""
You are an expert flashcard creator for active recall and spaced repetition.

Generate exactly {count} high-quality flashcards based on the user's request.

Rules:
- Front: clear question, term, cloze prompt or problem that forces recall
- Back: complete, concise, accurate answer (explanation + key facts)
- Use {{{{c1:: }}}} for cloze deletions when it makes sense (definitions, lists, formulas)
- Keep front short (5-20 words), back informative but concise (10-80 words)
- Cover core concepts, facts, dates, formulas, processes, causes/effects
- Output ONLY the JSON array: no explanations, no markdown, no code blocks, no extra characters!

Output format (nothing else):
[
  {{"front": "Question or term here", "back": "Full answer here"}},
  ...
]

User request: {request}
""".strip()

    def quiz(self, count: int, request: str) -> str:
        return f"""
You are an expert quiz creator for educational assessments.

Generate exactly {count} high-quality open-ended questions based on the user's request.

Rules:
- Each question should require a written answer (short answer or essay style)
- Questions should test understanding, critical thinking, and application of knowledge
- Include the correct/model answer for each question
- Vary difficulty levels appropriately
- Make questions clear and specific
- Output ONLY the JSON array: no explanations, no markdown, no code blocks, no extra characters!

Output format (nothing else):
[
  {{
    "question": "Clear question text here?",
    "correct_answer": "The model answer or key points that should be in a correct answer"
  }},
  ...
]

Notes:
- Questions can be short answer or require longer responses
- correct_answer should contain the ideal answer or key points expected
- Ensure questions are unambiguous and test meaningful understanding

User request: {request}
""".strip()

    def grading(self, inputs: Sequence[GradingInput]) -> str:
        listing = "\n".join(
            f"\nQuestion {idx} (ID: {item.question_id}):\n"
            f"Q: {item.question}\n"
            f"Correct Answer: {item.correct_answer}\n"
            f"Student Answer: {item.user_answer}\n"
            for idx, item in enumerate(inputs, 1)
        )
        return f"""
You are an expert teacher grading quiz answers. You will receive a list of questions with the correct answer and the student's answer.

For each question, you must:
1. Determine if the student's answer is correct, partially correct, or incorrect
2. Consider that answers don't need to be word-for-word identical - focus on whether the key concepts are present
3. Be fair and generous - if the answer demonstrates understanding, mark it correct even if phrased differently
4. Provide brief, constructive feedback explaining why the answer is correct or what was missing

Output ONLY a JSON array with this exact structure:
[
  {{
    "questionId": "the question ID provided",
    "isCorrect": true or false,
    "feedback": "Brief explanation of the grading decision"
  }},
  ...
]

Questions to grade:
{listing}

Remember: Output ONLY the JSON array, no markdown, no code blocks, no extra text!
""".strip()

    def study_plan(
        self,
        course: str,
        days: int,
        hours_per_day: str,
        topics: str,
        goal: str,
        has_exam_date: bool,
    ) -> str:
        duration_line = f"Days until exam: {days}" if has_exam_date else "Duration: 14-day intensive"
        return f"""You are the world's best academic coach.

Course: {course}
Goal: {goal}
Daily study time: {hours_per_day} hours
{duration_line}
Topics to focus on: {topics or "all essential topics"}

Return ONLY a valid JSON object with this exact structure. NO markdown. NO code blocks.

{{
  "title": "{days}-Day Plan: {course}",
  "duration": "{days} days",
  "dailyHours": "{hours_per_day}",
  "totalSessions": {days},
  "schedule": [
    {{
      "day": 1,
      "date": "2025-12-01",
      "focus": "Foundations",
      "tasks": ["Watch intro lecture", "Read chapter 1", "Make notes", "Solve 15 questions"],
      "timeEstimate": "{hours_per_day} hours",
      "motivation": "Day 1 sets the tone - you're already ahead!"
    }}
    // ... one object per day, up to day {days}
  ]
}}

Rules:
- Return ONLY the JSON
- No explanations
- No code blocks
- No extra text"""
