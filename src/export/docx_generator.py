"""DOCX document generator for quiz export."""

from datetime import datetime
from pathlib import Path

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt, RGBColor

from src.models.quiz import Question, QuestionType, Quiz

SECTION_TITLES = {
    QuestionType.MULTIPLE_CHOICE: "Multiple Choice Questions",
    QuestionType.FILL_BLANK: "Fill in the Blanks",
    QuestionType.DESCRIPTIVE: "Descriptive Questions",
}
DESCRIPTIVE_ANSWER_LINES = 6
HEADING_COLOR = RGBColor(0, 51, 102)
ANSWER_COLOR = RGBColor(0, 128, 0)


def ensure_output_directory(output_dir: str = "output") -> Path:
    """
    Ensure the output directory exists.

    Args:
        output_dir: Directory path to create

    Returns:
        Path object for the output directory
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    return output_path


def generate_timestamped_filename(base_name: str, extension: str = "docx") -> str:
    """
    Generate a filename with timestamp.

    Args:
        base_name: Base name for the file
        extension: File extension (without dot)

    Returns:
        Filename with timestamp
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    # Drop any directory part
    base_name = Path(base_name).name
    return f"{base_name}_{timestamp}.{extension}"


def group_questions_by_type(quiz: Quiz) -> list[tuple[QuestionType, list[Question]]]:
    """
    Split a quiz into sections, one per question type, in MCQ, FIB,
    Descriptive order. Empty sections are left out.
    """
    sections = []
    for question_type in SECTION_TITLES:
        questions = quiz.get_questions_by_type(question_type)
        if questions:
            sections.append((question_type, questions))
    return sections


def export_to_docx(
    quiz: Quiz,
    output_path: str,
    include_answers: bool = False,
    use_output_dir: bool = True,
    output_dir: str = "output",
) -> str:
    """
    Export quiz to a formatted DOCX question paper.

    Args:
        quiz: Quiz to export
        output_path: Path where the DOCX file should be saved
        include_answers: If True, marks answers inline and appends an answer key
        use_output_dir: If True, saves to output directory with timestamp
        output_dir: Directory to save files in

    Returns:
        Path to the created DOCX file
    """
    if use_output_dir:
        output_dir_path = ensure_output_directory(output_dir)
        output_path = str(output_dir_path / generate_timestamped_filename(Path(output_path).stem))

    doc = Document()
    setup_document_styles(doc)

    title = doc.add_heading(quiz.title, level=0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    info_para = doc.add_paragraph()
    info_para.add_run(f"Class: {quiz.class_label}").bold = True
    info_para.add_run("  |  ")
    info_para.add_run(f"Curriculum: {quiz.curriculum}").bold = True
    info_para.add_run("  |  ")
    info_para.add_run(f"Total Questions: {quiz.total_questions}").bold = True
    info_para.alignment = WD_ALIGN_PARAGRAPH.CENTER

    chapters_para = doc.add_paragraph(f"Chapters: {quiz.chapters}")
    chapters_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
    chapters_para.runs[0].italic = True

    date_para = doc.add_paragraph(f"Generated: {quiz.created_at.strftime('%Y-%m-%d %H:%M')}")
    date_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
    date_para.runs[0].font.size = Pt(9)
    date_para.runs[0].font.color.rgb = RGBColor(128, 128, 128)

    number = 1
    for question_type, questions in group_questions_by_type(quiz):
        add_section_to_document(doc, question_type, questions, number, include_answers)
        number += len(questions)

    if include_answers:
        add_answer_key(doc, quiz)

    doc.save(output_path)

    return output_path


def setup_document_styles(doc: Document) -> None:
    """
    Set up document-wide styles.

    Args:
        doc: Document to configure
    """
    font = doc.styles["Normal"].font
    font.name = "Calibri"
    font.size = Pt(11)

    for section in doc.sections:
        section.top_margin = Inches(1)
        section.bottom_margin = Inches(1)
        section.left_margin = Inches(1)
        section.right_margin = Inches(1)


def add_section_to_document(
    doc: Document,
    question_type: QuestionType,
    questions: list[Question],
    start_number: int = 1,
    include_answers: bool = False,
) -> None:
    """
    Add one question-type section to the document.

    Args:
        doc: Document to add to
        question_type: Type shared by all questions of the section
        questions: Questions in the section
        start_number: Number of the first question
        include_answers: If True, marks the answer under each question
    """
    heading = doc.add_heading(SECTION_TITLES[question_type], level=1)
    heading.runs[0].font.color.rgb = HEADING_COLOR

    for number, question in enumerate(questions, start_number):
        q_para = doc.add_paragraph()
        q_run = q_para.add_run(f"Q{number}. ")
        q_run.bold = True
        q_run.font.size = Pt(12)
        q_para.add_run(question.question)

        if question_type == QuestionType.MULTIPLE_CHOICE:
            for option in question.options or []:
                opt_para = doc.add_paragraph(option)
                opt_para.paragraph_format.left_indent = Inches(0.5)
                if include_answers and _is_answer_option(question, option):
                    opt_para.runs[0].bold = True
                    opt_para.runs[0].font.color.rgb = ANSWER_COLOR
        elif question_type == QuestionType.FILL_BLANK:
            blank = doc.add_paragraph("Answer: ____________________")
            blank.paragraph_format.left_indent = Inches(0.5)
        else:
            for _ in range(DESCRIPTIVE_ANSWER_LINES):
                doc.add_paragraph("_" * 80)

        if include_answers and question_type != QuestionType.MULTIPLE_CHOICE:
            ans_para = doc.add_paragraph()
            ans_para.paragraph_format.left_indent = Inches(0.5)
            ans_run = ans_para.add_run(f"Answer: {question.answer}")
            ans_run.bold = True
            ans_run.font.color.rgb = ANSWER_COLOR

        if include_answers and question.explanation:
            exp_para = doc.add_paragraph()
            exp_para.paragraph_format.left_indent = Inches(0.5)
            exp_run = exp_para.add_run(f"Explanation: {question.explanation}")
            exp_run.italic = True
            exp_run.font.size = Pt(10)
            exp_run.font.color.rgb = RGBColor(64, 64, 64)

        doc.add_paragraph()


def _is_answer_option(question: Question, option: str) -> bool:
    letter = question.answer.strip().upper().split(".")[0]
    return option.strip().upper().split(".")[0] == letter


def add_answer_key(doc: Document, quiz: Quiz) -> None:
    """
    Add an answer key section at the end of the document.

    Args:
        doc: Document to add to
        quiz: Quiz to list answers for
    """
    doc.add_page_break()

    header = doc.add_heading("Answer Key", level=1)
    header.alignment = WD_ALIGN_PARAGRAPH.CENTER
    header.runs[0].font.color.rgb = HEADING_COLOR

    table = doc.add_table(rows=1, cols=4)
    table.style = "Light Grid Accent 1"

    header_cells = table.rows[0].cells
    header_cells[0].text = "Q#"
    header_cells[1].text = "Type"
    header_cells[2].text = "Answer"
    header_cells[3].text = "Explanation"

    for cell in header_cells:
        for paragraph in cell.paragraphs:
            for run in paragraph.runs:
                run.bold = True

    number = 1
    for question_type, questions in group_questions_by_type(quiz):
        for question in questions:
            row_cells = table.add_row().cells
            row_cells[0].text = str(number)
            row_cells[1].text = question_type.value
            row_cells[2].text = question.answer
            row_cells[3].text = question.explanation or "N/A"
            number += 1


def generate_answer_key(quiz: Quiz, output_path: str) -> str:
    """
    Generate a separate answer key document.

    Args:
        quiz: Quiz to list answers for
        output_path: Path where the answer key should be saved

    Returns:
        Path to the created answer key file
    """
    doc = Document()
    setup_document_styles(doc)

    title = doc.add_heading(f"{quiz.title} - Answer Key", level=0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    add_answer_key(doc, quiz)

    doc.save(output_path)

    return output_path


def export_quiz_with_separate_answers(
    quiz: Quiz, base_path: str, output_dir: str = "output"
) -> tuple[str, str]:
    """
    Export quiz with questions and answers in separate files.

    Args:
        quiz: Quiz to export
        base_path: Base path for output files (without extension)
        output_dir: Directory to save files in

    Returns:
        Tuple of (questions_path, answers_path)
    """
    output_path = ensure_output_directory(output_dir)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    base_name = Path(base_path).name

    questions_path = str(output_path / f"{base_name}_questions_{timestamp}.docx")
    answers_path = str(output_path / f"{base_name}_answers_{timestamp}.docx")

    export_to_docx(quiz, questions_path, include_answers=False, use_output_dir=False)
    generate_answer_key(quiz, answers_path)

    return questions_path, answers_path
