"""
Prompt Templates
================
Instruction templates for turning a source file into a learning note.

There is one canonical result schema (ANALYSIS_SCHEMA_VERSION). Code and
markdown files differ only in their overview/terminology/explanation fields,
and JS/TS code files additionally request the ``codeOptimizations`` section.
The quiz section is shared: always 3 multiple choice, 1 short answer and
1 essay question.
"""

from .file_types import get_file_type, supports_optimizations

ANALYSIS_SCHEMA_VERSION = 1

# All generated content is written in this language
RESPONSE_LANGUAGE = "Korean"

OPTIMIZATION_CATEGORIES = (
    "performanceImprovements",
    "readabilityImprovements",
    "maintainabilityImprovements",
    "bestPractices",
    "potentialBugs",
)

SYSTEM_ROLE = "You are an AI tutor that helps developers learn from real source files."

QUIZ_INSTRUCTIONS = """{number}. Learning quiz: exactly 5 quiz questions about this {subject}, with this composition:
   - 3 multiple choice questions: each with exactly 4 options, the index of the correct option (0-3) and an explanation
   - 1 short answer question: the correct answer, a list of acceptable answers and an explanation
   - 1 essay question: a sample answer and the key points used for grading"""

LANGUAGE_INSTRUCTIONS = f"""IMPORTANT: Write every part of the response in {RESPONSE_LANGUAGE}, both the analysis and the quiz.
Ask different questions on every analysis; do not repeat the same question patterns."""

QUIZ_SCHEMA = """  "quizzes": [
    {
      "type": "multipleChoice",
      "question": "question text",
      "options": ["option 1", "option 2", "option 3", "option 4"],
      "answer": 0,
      "explanation": "why this answer is correct"
    },
    {
      "type": "shortAnswer",
      "question": "question text",
      "answer": "correct answer",
      "acceptableAnswers": ["answer 1", "answer 2", "answer 3"],
      "explanation": "why this answer is correct"
    },
    {
      "type": "essay",
      "question": "question text",
      "sampleAnswer": "model answer text",
      "keyPoints": ["key point 1", "key point 2", "key point 3"],
      "explanation": "grading guide"
    }
  ]"""

OPTIMIZATION_INSTRUCTIONS = """5. Code optimization and refactoring suggestions:
   - Performance: concrete places where performance can improve, and how
   - Readability: structural changes that make the code easier to read
   - Maintainability: concrete refactorings that make the code easier to maintain
   - Best practices: improvements following current best practices for this language/framework
   - Potential bugs: likely bugs or error-prone spots, and how to fix them

   Every suggestion must name the code location and include an improved code example."""

_SUGGESTION = '{"issue": "problem", "location": "code location", "suggestion": "improved code", "explanation": "reason"}'

OPTIMIZATION_SCHEMA = (
    '  "codeOptimizations": {\n'
    + ",\n".join(f'    "{category}": [{_SUGGESTION}]' for category in OPTIMIZATION_CATEGORIES)
    + "\n  },\n"
)


def build_code_prompt(include_optimizations: bool) -> str:
    optimization_instructions = OPTIMIZATION_INSTRUCTIONS + "\n" if include_optimizations else ""
    optimization_schema = OPTIMIZATION_SCHEMA if include_optimizations else ""

    return f"""{SYSTEM_ROLE}
Analyze the given code file and write a learning note with the following sections:

1. File overview: the purpose and main features of this file
2. Key learning points: important concepts and patterns this code teaches (each specific and practical)
3. Tech stack: the main libraries, frameworks and patterns used
4. Code explanation: a detailed explanation of the main code blocks, focusing on the core functions and logic
{optimization_instructions}{QUIZ_INSTRUCTIONS.format(number=6, subject="code")}

{LANGUAGE_INSTRUCTIONS}

Return the result as a JSON object in exactly this format:
{{
  "fileOverview": "overview text",
  "learningPoints": ["learning point 1", "learning point 2", ...],
  "techStack": ["technology 1", "technology 2", ...],
  "codeExplanation": "code explanation text",
{optimization_schema}{QUIZ_SCHEMA}
}}"""


def build_markdown_prompt() -> str:
    return f"""{SYSTEM_ROLE}
Analyze the given markdown/text document and write a learning note with the following sections:

1. Document overview: the main topic and purpose of this document
2. Key concepts: the main concepts and ideas the document covers (5-7 items)
3. Section summary: a summary of the main sections and their content
4. Learning points: the important things this document teaches
5. Related technologies/terms: the main technologies or terms mentioned
{QUIZ_INSTRUCTIONS.format(number=6, subject="document")}

{LANGUAGE_INSTRUCTIONS}

Return the result as a JSON object in exactly this format:
{{
  "fileOverview": "document overview text",
  "learningPoints": ["learning point 1", "learning point 2", ...],
  "keyTerms": ["term 1", "term 2", ...],
  "sectionSummary": "section summary text",
{QUIZ_SCHEMA}
}}"""


def build_system_prompt(file_name: str) -> str:
    """
    Select and build the instruction template for a file.

    Args:
        file_name: Name of the file being analyzed; its extension picks the template

    Returns:
        str: System prompt for the completion request
    """
    if get_file_type(file_name) == "markdown":
        return build_markdown_prompt()
    return build_code_prompt(include_optimizations=supports_optimizations(file_name))


def build_user_prompt(file_name: str, file_content: str) -> str:
    return f"File name: {file_name}\n\nFile content:\n{file_content}"
