# DEPENDENCIES
import re
import csv
import html
from io import BytesIO
from typing import List
from io import StringIO
from typing import Optional
from reportlab.lib import colors
from reportlab.platypus import Table
from reportlab.lib.units import inch
from reportlab.platypus import Spacer
from reportlab.platypus import Paragraph
from reportlab.platypus import TableStyle
from reportlab.lib.pagesizes import letter
from reportlab.platypus import KeepTogether
from services.data_models import Flag
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import SimpleDocTemplate
from services.data_models import DiffSegment
from reportlab.lib.styles import getSampleStyleSheet
from services.persistence import StoredAnalysis
from utils.logger import ContractAnalyzerLogger
from services.redline_generator import RedlineGenerator


CSV_HEADER       = ["Severity", "Clause", "Rationale", "Suggestion"]

SEVERITY_COLORS  = {"high"   : "#dc2626",
                    "medium" : "#f97316",
                    "low"    : "#16a34a",
                   }

DELETION_COLOR   = "#dc2626"
INSERTION_COLOR  = "#16a34a"


def safe_title(title: Optional[str], limit: int = 50) -> str:
    """
    Filename-safe rendering of a contract title
    """
    return re.sub(r"[^a-zA-Z0-9\-_]", "_", title or "contract")[:limit]


def export_filename(analysis: StoredAnalysis, extension: str) -> str:
    kind = "analysis" if (extension == "csv") else "report"

    return f"clausewise-{kind}-{safe_title(analysis.title)}-{analysis.analysis_id[:8]}.{extension}"


def sort_by_severity(flags: List[Flag]) -> List[Flag]:
    """
    Highest severity first; original order kept within a severity
    """
    return sorted(flags, key = lambda flag: -flag.severity.rank)


def _csv_field(value: Optional[str]) -> str:
    return re.sub(r"\s+", " ", value or "").strip()


@ContractAnalyzerLogger.log_execution_time("export_csv")
def export_csv(flags: List[Flag]) -> str:
    """
    Flags as CSV: fixed header, every field quoted, newlines and whitespace runs collapsed

    Arguments:
    ----------
        flags { list } : Flags of one stored analysis

    Returns:
    --------
        { str } : CSV document
    """
    buffer = StringIO()
    writer = csv.writer(buffer, quoting = csv.QUOTE_ALL, lineterminator = "\n")

    buffer.write(",".join(CSV_HEADER) + "\n")

    for flag in sort_by_severity(flags):
        writer.writerow([_csv_field(flag.severity.value),
                         _csv_field(flag.clause),
                         _csv_field(flag.rationale),
                         _csv_field(flag.suggestion),
                        ])

    return buffer.getvalue().rstrip("\n")


class PDFReportGenerator:
    """
    Analysis report: summary, flagged clauses and a proposed redline for each flag
    """
    def __init__(self, redliner: Optional[RedlineGenerator] = None):
        self.redliner      = redliner or RedlineGenerator()
        self.styles        = getSampleStyleSheet()

        self._setup_custom_styles()

        self.page_width    = letter[0]
        self.page_height   = letter[1]
        self.margin_left   = 0.75 * inch
        self.margin_right  = 0.75 * inch
        self.margin_top    = 1.0 * inch
        self.margin_bottom = 1.0 * inch
        self.content_width = self.page_width - self.margin_left - self.margin_right


    def _setup_custom_styles(self):
        # Title style
        self.styles.add(ParagraphStyle(name       = 'ReportTitle',
                                       parent     = self.styles['Heading1'],
                                       fontSize   = 20,
                                       textColor  = colors.HexColor('#1a1a1a'),
                                       spaceAfter = 15,
                                       fontName   = 'Helvetica-Bold',
                                      )
                       )

        # Section heading
        self.styles.add(ParagraphStyle(name        = 'SectionHeading',
                                       parent      = self.styles['Heading2'],
                                       fontSize    = 14,
                                       textColor   = colors.HexColor('#1a1a1a'),
                                       spaceAfter  = 10,
                                       spaceBefore = 15,
                                       fontName    = 'Helvetica-Bold',
                                      )
                       )

        # Body text
        self.styles.add(ParagraphStyle(name      = 'CustomBodyText',
                                       parent    = self.styles['Normal'],
                                       fontSize  = 9,
                                       leading   = 12,
                                       textColor = colors.HexColor('#333333'),
                                       fontName  = 'Helvetica',
                                      )
                       )

        # Quoted clause
        self.styles.add(ParagraphStyle(name       = 'ClauseText',
                                       parent     = self.styles['Normal'],
                                       fontSize   = 9,
                                       leading    = 12,
                                       leftIndent = 12,
                                       textColor  = colors.HexColor('#333333'),
                                       fontName   = 'Helvetica-Oblique',
                                      )
                       )

        # Small text style
        self.styles.add(ParagraphStyle(name      = 'SmallText',
                                       parent    = self.styles['Normal'],
                                       fontSize  = 8,
                                       leading   = 10,
                                       textColor = colors.HexColor('#666666'),
                                       fontName  = 'Helvetica',
                                      )
                       )


    def _create_header_footer(self, canvas, doc):
        """
        Header and footer on every page
        """
        canvas.saveState()

        canvas.setFont('Helvetica-Bold', 7)
        canvas.setFillColor(colors.black)
        canvas.drawString(self.margin_left, self.page_height - 0.7 * inch, "Generated by ClauseWise - AI Contract Analysis")

        canvas.setFont('Helvetica', 7)
        canvas.setFillColor(colors.HexColor('#666666'))
        canvas.drawString(self.page_width - self.margin_right - 0.8 * inch, 0.6 * inch, f"Page {doc.page}")
        canvas.drawCentredString(self.page_width / 2.0, 0.6 * inch, "This is not legal advice.")

        canvas.restoreState()


    @ContractAnalyzerLogger.log_execution_time("export_pdf")
    def generate_report(self, analysis: StoredAnalysis, flags: List[Flag]) -> BytesIO:
        """
        Render a stored analysis as PDF

        Arguments:
        ----------
            analysis { StoredAnalysis } : Analysis row

            flags         { list }      : Its flags

        Returns:
        --------
            { BytesIO } : PDF document, positioned at the start
        """
        buffer = BytesIO()

        doc    = SimpleDocTemplate(buffer,
                                   pagesize     = letter,
                                   rightMargin  = self.margin_right,
                                   leftMargin   = self.margin_left,
                                   topMargin    = self.margin_top,
                                   bottomMargin = self.margin_bottom,
                                   title        = analysis.title,
                                  )

        ordered = sort_by_severity(flags)
        story   = list()

        story.extend(self._build_summary(analysis, ordered))
        story.extend(self._build_flags(ordered))
        story.extend(self._build_redlines(ordered))

        doc.build(story, onFirstPage = self._create_header_footer, onLaterPages = self._create_header_footer)

        buffer.seek(0)

        return buffer


    def _build_summary(self, analysis: StoredAnalysis, flags: List[Flag]) -> List:
        risk       = analysis.overall_risk.value
        story      = [Paragraph(self._escape(analysis.title), self.styles['ReportTitle']),
                      Paragraph(f"Generated {analysis.created_at.strftime('%Y-%m-%d %H:%M UTC')}", self.styles['SmallText']),
                      Spacer(1, 0.2 * inch),
                     ]

        stats_data = [["Overall Risk", "Flags", "AI Analysis"],
                      [risk.upper(), str(len(flags)), "Yes" if analysis.ai_ran else "Rule-based"],
                     ]

        stats      = Table(stats_data, colWidths = [self.content_width / 3.0] * 3)

        stats.setStyle(TableStyle([('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#374151')),
                                   ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
                                   ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
                                   ('FONTSIZE', (0, 0), (-1, -1), 9),
                                   ('TEXTCOLOR', (0, 1), (0, 1), colors.HexColor(SEVERITY_COLORS.get(risk, '#333333'))),
                                   ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
                                   ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#d1d5db')),
                                  ]))

        story.extend([stats,
                      Paragraph("Summary", self.styles['SectionHeading']),
                      Paragraph(self._escape(analysis.summary), self.styles['CustomBodyText']),
                     ])

        return story


    def _build_flags(self, flags: List[Flag]) -> List:
        story = [Paragraph("Flagged Clauses", self.styles['SectionHeading'])]

        if not flags:
            story.append(Paragraph("No significant risk patterns were detected.", self.styles['CustomBodyText']))
            return story

        for index, flag in enumerate(flags, start = 1):
            color = SEVERITY_COLORS.get(flag.severity.value, '#333333')
            block = [Paragraph(f"{index}. <font color='{color}'><b>{flag.severity.value.upper()}</b></font>", self.styles['CustomBodyText']),
                     Paragraph(f"\"{self._escape(flag.clause)}\"", self.styles['ClauseText']),
                    ]

            if flag.rationale:
                block.append(Paragraph(f"<b>Why this matters:</b> {self._escape(flag.rationale)}", self.styles['CustomBodyText']))

            if flag.suggestion:
                block.append(Paragraph(f"<b>Suggested approach:</b> {self._escape(flag.suggestion)}", self.styles['CustomBodyText']))

            block.append(Spacer(1, 0.12 * inch))
            story.append(KeepTogether(block))

        return story


    def _build_redlines(self, flags: List[Flag]) -> List:
        candidates = [flag for flag in flags if flag.suggestion]

        if not candidates:
            return []

        story      = [Paragraph("Proposed Redlines", self.styles['SectionHeading'])]

        for index, flag in enumerate(candidates, start = 1):
            redline = self.redliner.redline(flag.clause, self.redliner.fallback_rewrite(flag.clause, flag.suggestion))

            story.append(KeepTogether([Paragraph(f"<b>Redline {index}</b>", self.styles['CustomBodyText']),
                                       Paragraph(self.render_segments(redline.segments), self.styles['CustomBodyText']),
                                       Spacer(1, 0.12 * inch),
                                      ]))

        return story


    @classmethod
    def render_segments(cls, segments: List[DiffSegment]) -> str:
        """
        Paragraph markup: deletions struck through in red, insertions underlined in green
        """
        parts = list()

        for segment in segments:
            text = cls._escape(segment.text)

            if (segment.op == "delete"):
                parts.append(f"<strike><font color='{DELETION_COLOR}'>{text}</font></strike>")

            elif (segment.op == "insert"):
                parts.append(f"<u><font color='{INSERTION_COLOR}'>{text}</font></u>")

            else:
                parts.append(text)

        return "".join(parts)


    @staticmethod
    def _escape(text: Optional[str]) -> str:
        return html.escape(text or "", quote = False)
