"""Quiz Templates - Prompts e constantes para geracao de questoes avancadas."""

from ..models.enums import Difficulty, QuestionDepth, QuestionType

# =============================================================================
# SYSTEM PROMPT
# =============================================================================

QUIZ_SYSTEM_PROMPT = (
    "You are an expert educator and quiz generator. "
    "Respond ONLY with valid JSON, without any additional text."
)

# =============================================================================
# LIMITES DE CONTEUDO
# =============================================================================

MAIN_CONTENT_LIMIT = 5000
SUPPLEMENTARY_CONTENT_LIMIT = 3000
TRUNCATION_NOTICE = (
    "\n\n[Content truncated for processing - ensure questions cover full content scope]"
)

# =============================================================================
# INSTRUCOES POR TIPO
# =============================================================================

QUESTION_TYPE_INSTRUCTIONS = {
    QuestionType.MULTIPLE_CHOICE_EXTENDED: (
        "Create detailed multiple choice questions with 4 options, including plausible "
        'distractors. Format options as "A) Option text", "B) Option text", etc.'
    ),
    QuestionType.TRUE_FALSE_EXPLAINED: (
        "Create true/false questions with comprehensive explanations for both outcomes"
    ),
    QuestionType.SCENARIO_BASED: (
        "Create realistic scenario questions that test application of knowledge in "
        "practical situations"
    ),
    QuestionType.VISUAL_INTERPRETATION: (
        "Create questions that require analysis of charts, graphs, or visual data"
    ),
    QuestionType.DIAGRAM_LABELING: (
        "Create questions about identifying or labeling parts of diagrams/images"
    ),
    QuestionType.CHART_ANALYSIS: (
        "Create questions requiring interpretation of data charts and graphs"
    ),
    QuestionType.MULTI_PART: (
        "Create questions with 2-3 related sub-questions that build on each other progressively"
    ),
    QuestionType.COMPARISON: (
        "Create questions comparing concepts, data, theories, or scenarios presented in the content"
    ),
    QuestionType.ESSAY_SHORT: (
        "Create short-answer questions requiring 2-3 sentence responses that demonstrate "
        "understanding"
    ),
}

# Variantes textuais dos tipos visuais quando o conteudo e apenas texto
TEXT_CONTENT_VISUAL_INSTRUCTIONS = {
    QuestionType.VISUAL_INTERPRETATION: (
        "Create questions that ask students to interpret described data, patterns, or "
        "relationships from the text content"
    ),
    QuestionType.DIAGRAM_LABELING: (
        "Create questions asking students to identify key components, parts, or elements "
        "described in the text content"
    ),
    QuestionType.CHART_ANALYSIS: (
        "Create questions that require interpretation of numerical data, trends, or "
        "statistical information mentioned in the text"
    ),
}

# =============================================================================
# MODIFICADORES
# =============================================================================

DIFFICULTY_MODIFIERS = {
    Difficulty.BEGINNER: (
        "Use simple language and focus on basic concepts and definitions. "
        "Questions should test recall and basic understanding."
    ),
    Difficulty.INTERMEDIATE: (
        "Include moderate complexity with some analysis and application. "
        "Test comprehension and ability to apply concepts."
    ),
    Difficulty.ADVANCED: (
        "Require critical thinking, synthesis, and deep understanding. "
        "Test analysis, evaluation, and complex reasoning."
    ),
    Difficulty.EXPERT: (
        "Challenge with complex scenarios, edge cases, and advanced applications. "
        "Test expertise and sophisticated reasoning."
    ),
}

DEPTH_MODIFIERS = {
    QuestionDepth.SHALLOW: (
        "Focus on surface-level facts, definitions, and basic recall of information"
    ),
    QuestionDepth.MEDIUM: (
        "Include understanding, comprehension, and basic application of concepts"
    ),
    QuestionDepth.DEEP: (
        "Require analysis, evaluation, synthesis, and complex reasoning about the material"
    ),
}

VISUAL_TEXT_GUIDANCE = """
IMPORTANT FOR VISUAL QUESTION TYPES:
Since the content is text-based, adapt visual question types as follows:
- For diagram_labeling: Ask about components, parts, or elements mentioned in the text
- For chart_analysis: Focus on numerical data, statistics, or trends described in the text
- For visual_interpretation: Ask students to interpret relationships or patterns described textually
Do NOT generate questions that require actual diagrams or charts unless they are described in the content."""

# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

RESPONSE_SCHEMA_EXAMPLE = """{
  "questions": [
    {
      "id": "adv_q_1",
      "type": "question_type",
      "question": "Main question text",
      "sub_questions": ["sub-question 1", "sub-question 2"],
      "options": ["A) Option 1", "B) Option 2", "C) Option 3", "D) Option 4"],
      "correct_answer": "A",
      "explanation": "Detailed explanation of why this is correct and why other options are wrong",
      "visual_content": {
        "type": "chart|diagram|image",
        "description": "Description of visual element"
      },
      "metadata": {
        "difficulty": 3,
        "categories": ["Critical Thinking"],
        "estimated_time": 120,
        "learning_objective": "What this question tests"
      }
    }
  ]
}"""

ADVANCED_QUIZ_PROMPT = """You are an expert educator. Generate EXACTLY {count} questions, NO MORE, NO FEWER.

CRITICAL REQUIREMENT - READ CAREFULLY:
- You MUST generate EXACTLY {count} questions
- Count each question as you create it: 1, 2, 3, 4, 5...
- If you reach the end and have fewer than {count}, ADD MORE QUESTIONS
- If you have more than {count}, REMOVE THE EXCESS
- VERIFY THE COUNT before responding: you must have EXACTLY {count} questions

ABSOLUTE REQUIREMENT: EXACTLY {count} QUESTIONS - COUNT THEM!

QUESTION TYPES TO INCLUDE (distribute evenly):
{type_instructions}

DIFFICULTY LEVEL: {difficulty}
{difficulty_modifier}

QUESTION DEPTH: {depth}
{depth_modifier}

{steering}{visual_guidance}

ADVANCED REQUIREMENTS:
{requirements}

FINAL VALIDATION CHECKLIST - VERIFY BEFORE RESPONDING:
- Count your questions: 1, 2, 3, 4, 5... = EXACTLY {count} questions
- All questions have proper explanations
- Multiple choice options formatted correctly
- Questions test the specified difficulty level
- Content coverage is comprehensive

CRITICAL: Before submitting your response, COUNT THE QUESTIONS. You MUST have EXACTLY {count} questions.

FORMAT YOUR RESPONSE AS VALID JSON:
{schema}

Notes on the format: "sub_questions" only for multi_part; "options" only for multiple choice; \
"correct_answer" is just the letter for multiple choice and a boolean for true/false; \
"visual_content" only if applicable.

CONTENT TO ANALYZE:
{content}

FINAL VERIFICATION: You MUST generate exactly {count} questions. Verify the count before responding. Count them: 1, 2, 3... up to {count}."""

SUPPLEMENTARY_PROMPT = """Generate EXACTLY {count} additional advanced quiz questions to supplement the existing quiz.

CRITICAL: You must generate EXACTLY {count} questions, NO MORE, NO FEWER.
Count them as you create: 1, 2, 3... up to {count}.

AVOID DUPLICATING these already covered topics: {existing_topics}

Use the same configuration as before:
- Difficulty: {difficulty}
- Question Types: {question_types}
- Categories: {categories}
- Content Type: {content_type}

VERIFICATION BEFORE RESPONDING: Count your questions. You MUST have EXACTLY {count} new questions.
{visual_guidance}

CONTENT:
{content}

Respond with valid JSON in this format:
{schema}

VERIFY: exactly {count} questions."""

FOLLOW_UP_PROMPT = """Based on the previous quiz performance, create {count} follow-up questions focusing on these weak areas: {weak_areas}.

Make the questions slightly easier but still challenging, with extra detailed explanations to help reinforce learning.

Previous question topics covered: {previous_topics}

CONTENT:
{content}

Respond with valid JSON in this format:
{schema}"""

# =============================================================================
# IMAGENS
# =============================================================================

VISUAL_IMAGE_PROMPTS = {
    QuestionType.DIAGRAM_LABELING: (
        "Create a clear, educational diagram for a quiz question: {question}. "
        "Context: {context}. Use clean lines, distinct components and leave space for labels. "
        "Educational style, white background, no text labels."
    ),
    QuestionType.CHART_ANALYSIS: (
        "Create a clear data chart or graph for a quiz question: {question}. "
        "Context: {context}. Use a simple bar, line or pie chart with clearly distinguishable "
        "data points. Professional, educational style, white background."
    ),
    QuestionType.VISUAL_INTERPRETATION: (
        "Create an educational illustration for a quiz question: {question}. "
        "Context: {context}. The image should show relationships or patterns that students "
        "can interpret. Clean, educational style."
    ),
}

VISUAL_DESCRIPTIONS = {
    QuestionType.DIAGRAM_LABELING: "Educational diagram generated to support this labeling question",
    QuestionType.CHART_ANALYSIS: "Data chart generated to support this analysis question",
    QuestionType.VISUAL_INTERPRETATION: "Educational illustration generated for interpretation",
}

# =============================================================================
# FALLBACK
# =============================================================================

FALLBACK_QUESTION_TEXT = (
    "Based on the provided content, what is a key concept or principle discussed? "
    "(Fallback Question {number})"
)

FALLBACK_OPTIONS = [
    "A) Review the content for key concepts",
    "B) Analyze the main themes presented",
    "C) Consider the important details mentioned",
    "D) Examine the core principles outlined",
]

# Marcador reconhecivel no inicio da explicacao
FALLBACK_EXPLANATION_MARKER = (
    "This is a fallback question generated when the AI service could not produce "
    "the full requested number of questions."
)

FALLBACK_EXPLANATION = (
    FALLBACK_EXPLANATION_MARKER
    + " Review the source content to identify its key concepts and principles."
)

FALLBACK_LEARNING_OBJECTIVE = "Content review and comprehension"

