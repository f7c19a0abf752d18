"""Prompt templates for question generation and descriptive grading.

Both builders are pure: same inputs, same prompt, no I/O.
"""

from src.models.quiz import Question, QuestionType

NO_TYPED_ANSWER = "No typed answer provided."
NO_EXTRACTED_TEXT = "No text extracted or uploaded."

_TYPE_DESCRIPTIONS = {
    QuestionType.MULTIPLE_CHOICE: "multiple-choice (MCQ)",
    QuestionType.FILL_BLANK: "fill-in-the-blank (FIB)",
    QuestionType.DESCRIPTIVE: "descriptive (long answer)",
}

_ANSWER_GUIDANCE = {
    QuestionType.MULTIPLE_CHOICE: (
        "the correct option exactly as listed, starting with its letter "
        "(e.g. 'C. Ampere')"
    ),
    QuestionType.FILL_BLANK: (
        "the exact word or short phrase that fills the blank (e.g. 'Ampere'); "
        "mark the blank in the question with '_____'"
    ),
    QuestionType.DESCRIPTIVE: (
        "a model answer covering the key points a full-mark answer must contain"
    ),
}


def build_generation_prompt(
    question_type: QuestionType,
    class_label: str,
    curriculum: str,
    subject: str,
    chapters: str,
    count: int,
) -> str:
    """
    Build the prompt that asks the provider for one batch of questions.

    Args:
        question_type: Type of every question in the batch
        class_label: Class / grade the quiz is for
        curriculum: Curriculum to follow
        subject: Subject of the quiz
        chapters: Chapters to cover
        count: Exact number of questions to request

    Returns:
        Prompt text
    """
    type_value = question_type.value
    options_line = ""
    options_rule = ""
    if question_type == QuestionType.MULTIPLE_CHOICE:
        options_line = '\n            "options": ["A. Option 1", "B. Option 2", "C. Option 3", "D. Option 4"],'
        options_rule = (
            "\n- Every question must have an \"options\" array of exactly 4 entries, "
            "labelled \"A. \", \"B. \", \"C. \" and \"D. \", with only one correct option."
        )
    else:
        options_rule = '\n- Do not include an "options" key.'

    return f"""Generate a {_TYPE_DESCRIPTIONS[question_type]} quiz for class {class_label} following the {curriculum} curriculum on {subject}, covering chapters: {chapters}.
Include exactly {count} questions.

Format the response as a single JSON object with this structure:
{{
    "questions": [
        {{
            "id": "unique_question_id_string",
            "question": "Question text here.",
            "type": "{type_value}",{options_line}
            "answer": "Correct answer here.",
            "explanation": "Brief explanation of the answer."
        }}
    ]
}}

Rules:
- The "questions" array must contain exactly {count} question objects.
- Give every question a unique string "id".
- "answer" must be {_ANSWER_GUIDANCE[question_type]}.{options_rule}

Provide ONLY the JSON object. Do not include any introductory or concluding text, markdown code blocks (like ```json), or extra characters outside the JSON. Ensure the JSON is valid and complete and contains exactly {count} questions."""


def build_evaluation_prompt(question: Question, typed_answer: str, reference_text: str) -> str:
    """
    Build the prompt that asks the provider to grade a descriptive answer.

    The reference block is only included when ``reference_text`` is non-empty.

    Args:
        question: Question being graded, including its answer key
        typed_answer: What the student typed
        reference_text: Text extracted from the student's uploaded document

    Returns:
        Prompt text
    """
    reference = (reference_text or "").strip()
    typed = (typed_answer or "").strip()

    reference_block = ""
    if reference:
        reference_block = (
            "Consider the following reference text from a PDF:\n"
            f"---\n{reference}\n---\n"
        )

    explanation = f" (Explanation: {question.explanation})" if question.explanation else ""

    return f"""Evaluate the following student answer for the question below.
{reference_block}
Question: {question.question}
Correct Answer/Key Points: {question.answer}{explanation}
Student Provided Answer:
---
Typed Answer: {typed or NO_TYPED_ANSWER}
Extracted from PDF: {reference or NO_EXTRACTED_TEXT}
---

Provide a score out of 10 based on accuracy and completeness compared to the correct answer, using the reference text if provided and relevant.
Provide concise feedback, identify correct parts, and suggest areas for improvement.
Format your response as a JSON object with the following keys:
{{
  "score": number (integer 0-10),
  "feedback": string,
  "correct_parts": string (or "N/A"),
  "improvements": string (or "N/A")
}}
Provide ONLY the JSON object. Do not include any introductory or concluding text, markdown code blocks (like ```json), or extra characters outside the JSON. Ensure the JSON is valid."""
