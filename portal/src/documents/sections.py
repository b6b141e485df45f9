"""
Document section templates.

Each section of the candidate bundle is a list of reportlab flowables built
from the candidate profile and the exam window. Blank values print as
``__________``; dates print as ``5 April 2025``.

Bundle order:
 1. StarParth appointment letter (non-participation / confidentiality)
 2. COVID-19 self-declaration
 3. StarParth undertaking
 4. StarParth payout
 5. StarParth debit note
 6. Netparam undertaking
 7. Netparam payout
 8. Netparam debit note
 9. Netparam appointment letter
"""

import io
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Flowable, Image, ListFlowable, ListItem, Paragraph, Spacer, Table, TableStyle

from portal.src.documents.assets import ImageLoader
from portal.src.utils.dates import BLANK, format_long_date

SIGNATURE_BLANK = "____________________"
DEBIT_AMOUNT = "2000"


@dataclass(frozen=True)
class Company:
    """Issuing company printed on a section."""
    name: str
    heading: str
    logos: Tuple[str, ...]


STARPARTH = Company(
    name="StarParth Technologies Pvt Ltd",
    heading="STARPARTH TECHNOLOGIES PVT LTD",
    logos=("starparth-logo.png",),
)
NETPARAM = Company(
    name="Netparam Technologies Pvt Ltd",
    heading="NETPARAM TECHNOLOGIES PVT LTD",
    logos=("netparam-logo.png", "netparam-logo-2.png"),
)


@lru_cache()
def _styles() -> Dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()["Normal"]
    return {
        "company": ParagraphStyle("company", parent=base, fontName="Helvetica-Bold",
                                  fontSize=14, leading=18, alignment=TA_CENTER),
        "subtitle": ParagraphStyle("subtitle", parent=base, fontSize=9, leading=12,
                                   alignment=TA_CENTER),
        "title": ParagraphStyle("title", parent=base, fontName="Helvetica-Bold",
                                fontSize=12, leading=16, alignment=TA_CENTER, spaceBefore=2),
        "body": ParagraphStyle("body", parent=base, fontSize=9, leading=12, spaceAfter=4),
        "bold": ParagraphStyle("bold", parent=base, fontName="Helvetica-Bold",
                               fontSize=9, leading=12, spaceBefore=4, spaceAfter=2),
        "small": ParagraphStyle("small", parent=base, fontSize=7.5, leading=10, spaceAfter=2),
        "italic": ParagraphStyle("italic", parent=base, fontName="Helvetica-Oblique",
                                 fontSize=7.5, leading=10, spaceAfter=2),
        "caption": ParagraphStyle("caption", parent=base, fontSize=7.5, leading=10,
                                  alignment=TA_CENTER),
    }


@dataclass
class DocumentContext:
    """Candidate and exam values plus image access for one bundle."""
    candidate: Dict[str, Any]
    exam: Dict[str, Any]
    images: ImageLoader
    content_width: float = 190 * mm

    def text(self, key: str, blank: str = BLANK) -> str:
        """Escaped candidate value, or the blank marker."""
        value = self.candidate.get(key)
        value = "" if value is None else str(value).strip()
        return escape(value) if value else blank

    def strong(self, key: str) -> str:
        return f"<b>{self.text(key)}</b>"

    def exam_text(self, key: str, blank: str = BLANK) -> str:
        value = self.exam.get(key)
        value = "" if value is None else str(value).strip()
        return escape(value) if value else blank

    @property
    def exam_name(self) -> str:
        return self.exam_text("examName")

    @property
    def start(self) -> str:
        return format_long_date(self.exam.get("startDate"))

    @property
    def end(self) -> str:
        return format_long_date(self.exam.get("endDate"))

    @property
    def exam_count(self) -> str:
        """Exam count padded to two digits."""
        count = self.exam.get("examCount")
        try:
            return f"{int(count):02d}" if count else "___"
        except (TypeError, ValueError):
            return escape(str(count))

    def image(self, source: Optional[str], width_mm: float, height_mm: float) -> Flowable:
        """Candidate image scaled into a box, or an empty bordered box."""
        return _image_or_box(self.images.load(source), width_mm, height_mm)

    def logos(self, company: Company) -> Optional[Flowable]:
        """Company logos in a row; None when no logo file is available."""
        loaded = [self.images.load_asset(name) for name in company.logos]
        cells = [_image(data, 45, 22) for data in loaded if data]
        if not cells:
            return None
        if len(cells) == 1:
            table = Table([cells], colWidths=[self.content_width])
        else:
            table = Table([cells], colWidths=[self.content_width / len(cells)] * len(cells))
        table.setStyle(TableStyle([
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]))
        return table


# ============================================================================
# Building blocks
# ============================================================================


def _image(data: bytes, width_mm: float, height_mm: float) -> Image:
    return Image(io.BytesIO(data), width=width_mm * mm, height=height_mm * mm, kind="proportional")


def _box(width_mm: float, height_mm: float) -> Table:
    table = Table([[""]], colWidths=[width_mm * mm], rowHeights=[height_mm * mm])
    table.setStyle(TableStyle([("BOX", (0, 0), (-1, -1), 0.75, colors.black)]))
    return table


def _image_or_box(data: Optional[bytes], width_mm: float, height_mm: float) -> Flowable:
    if data:
        return _image(data, width_mm, height_mm)
    return _box(width_mm, height_mm)


def _p(text: str, style: str = "body") -> Paragraph:
    return Paragraph(text, _styles()[style])


def _numbered(items: Sequence[str]) -> ListFlowable:
    style = _styles()["body"]
    return ListFlowable(
        [ListItem(Paragraph(item, style), leftIndent=14) for item in items],
        bulletType="1",
        bulletFontSize=9,
        leftIndent=14,
    )


def _header(ctx: DocumentContext, company: Company, title: Optional[str] = None,
            subtitle: Optional[str] = None, exam_line: bool = True) -> List[Flowable]:
    flowables: List[Flowable] = []
    logos = ctx.logos(company)
    if logos is not None:
        flowables.extend([logos, Spacer(1, 2 * mm)])
    flowables.append(_p(company.heading, "company"))
    if subtitle:
        flowables.append(_p(subtitle, "subtitle"))
    if exam_line:
        flowables.append(_p(f"<b>{ctx.exam_name}</b> <b>{ctx.start}</b> to <b>{ctx.end}</b>", "subtitle"))
    if title:
        flowables.append(_p(f"<u>{title}</u>", "title"))
    flowables.append(Spacer(1, 3 * mm))
    return flowables


def _signature_row(ctx: DocumentContext, label: str = "Signature:") -> Table:
    signature = ctx.candidate.get("signature")
    data = ctx.images.load(signature)
    cell: Flowable = _image(data, 32, 12) if data else _p(SIGNATURE_BLANK)
    table = Table([[_p(label), cell]], colWidths=[22 * mm, 40 * mm], hAlign="LEFT")
    table.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
    ]))
    return table


def _working_for(ctx: DocumentContext, strong_exam: bool = True) -> Paragraph:
    exam = f"<b>{ctx.exam_name}</b>" if strong_exam else ctx.exam_name
    return _p(
        f"I {ctx.strong('name')} S/O {ctx.strong('sonOf')} Resident of {ctx.strong('resident')} "
        f"Aadhaar No. {ctx.strong('aadhaarNo')} is working for the {exam} Examination held from "
        f"<b>{ctx.start}</b> to <b>{ctx.end}</b>"
    )


def _final_confirmation(ctx: DocumentContext) -> Paragraph:
    return _p(
        f"I will be there at from <b>{ctx.start}</b> to <b>{ctx.end}</b> and this is final "
        "confirmation, and I will not refuse in any condition."
    )


def _date_place(ctx: DocumentContext) -> List[Flowable]:
    return [
        _p(f"Date: {ctx.strong('currentDate')}"),
        _p(f"Place: {ctx.strong('resident')}"),
    ]


# ============================================================================
# Sections
# ============================================================================


def appointment_letter(ctx: DocumentContext, company: Company) -> List[Flowable]:
    """Non-participation, no-relation and confidentiality agreement."""
    if company is STARPARTH:
        subtitle = ("CHIEF INVIGILATOR NON-PARTICIPATION / NO RELATION &amp; "
                    "CONFIDENTIALITY AGREEMENT &amp; APPOINTMENT LETTER")
    else:
        subtitle = "CHIEF INVIGILATOR NON-PARTICIPATION / NO RELATION &amp; CONFIDENTIALITY AGREEMENT"

    flowables = _header(ctx, company, subtitle=subtitle, exam_line=False)
    flowables.append(_p(
        f"I, {ctx.strong('name')} S/O {ctx.strong('sonOf')} hereby declare that I am not appearing "
        f"in the <b>{ctx.exam_name}</b> Examination, <b>{ctx.exam_count}</b>/"
        f"<b>{ctx.exam_text('heldDate')}</b>, held from <b>{ctx.start}</b> to <b>{ctx.end}</b> as a "
        "candidate either at the exam centre or have been deputed at any other centre which is "
        "involved in the conduct of the exam. If I am absent or leave the examination Centre at any "
        "time, in any scenario on the above mentioned dates, or found doing any Suspicious Activity / "
        "Malpractice / Unethical Behavior / Professional Misconduct, then NetParam Technologies Pvt "
        f"Ltd / NETCOM/C-DAC/{ctx.exam_name} has full authority to take any disciplinary action "
        "(regarding Duty Code of Conduct, as specified in IPC Section)."
    ))
    flowables.append(_p(
        f"As a condition of serving as an Operations Chief Invigilator of {company.name}, I understand "
        "and agree to accept the responsibility for maintaining and protecting the confidential nature "
        f"of {company.name} and related resources. I understand that revealing the contents of the test "
        "in the form of any duplication, unauthorized distribution, disclosure, or other breaches of "
        "confidentiality can render the tests unusable and/or severely compromised with respect to the "
        "purpose for which they are administered. As a Chief Invigilator, I agree that:"
    ))
    flowables.append(_numbered([
        f"Will oversee and carry out the administration of {company.name} tests in conformance with "
        f"the conditions described by {company.name}.",
        "Will not, directly or indirectly, in any way compromise the security of any tests or their content.",
        "Only I am responsible for my own behavior, character, or any other work that is beyond my "
        "authorization.",
    ]))

    if company is STARPARTH:
        flowables.append(_p("Required documents:", "bold"))
        flowables.append(_numbered([
            "Photo Id Proof (Aadhaar Card / PAN Card)",
            "2 Passport Size Photo",
        ]))

    details = [
        _p(f"Name: {ctx.strong('name')}"),
        _p(f"Email: {ctx.strong('email')}"),
        _p(f"DOB: {ctx.strong('dob')}"),
        _p(f"Mobile No.: {ctx.strong('phone')}"),
        _p(f"Area: {ctx.strong('area')}"),
        _p(f"Landmark: {ctx.strong('landmark')}"),
        _p(f"Address: {ctx.strong('address')}"),
        _p(f"Date: {ctx.strong('currentDate')}"),
        _signature_row(ctx),
    ]
    pictures = [
        _p("Passport Size Photo", "caption"),
        ctx.image(ctx.candidate.get("photo"), 30, 36),
        Spacer(1, 2 * mm),
        _p("Thumb Impression", "caption"),
        ctx.image(ctx.candidate.get("thumbprint"), 24, 24),
    ]
    grid = Table([[details, pictures]], colWidths=[ctx.content_width - 50 * mm, 50 * mm])
    grid.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("ALIGN", (1, 0), (1, 0), "CENTER"),
        ("LEFTPADDING", (0, 0), (0, 0), 0),
    ]))
    flowables.extend([Spacer(1, 2 * mm), grid, Spacer(1, 2 * mm)])

    flowables.append(_p(
        f"Exam city Preference - 1) {ctx.strong('examCityPreference1')} "
        f"2) {ctx.strong('examCityPreference2')}"
    ))
    flowables.append(_p(
        f"Previous CDAC Exam Experience - {ctx.strong('previousCdaExperience')} | "
        f"No. of Years {ctx.strong('cdaExperienceYears')} | Role- {ctx.strong('cdaExperienceRole')}"
    ))
    flowables.append(_p(
        "*The meaning of relatives is defined as under: Wife, husband, son, daughter, grand-son, "
        "granddaughter, brother, sister, son-in-law, sister-in-law, daughter-in-law, nephew, niece, "
        "sister’s daughter and son and their son and their son and daughter, uncle, aunty.",
        "italic"
    ))
    flowables.append(_p(
        "Note:- Exam City preference doesn’t guarantee for the actual allocation, it’s only "
        "a probability.",
        "small"
    ))
    return flowables


def covid_declaration(ctx: DocumentContext) -> List[Flowable]:
    """COVID-19 self-declaration."""
    flowables = _header(ctx, STARPARTH, title="Self-Declaration - COVID-19")
    flowables.extend([
        _p(f"Name: {ctx.strong('name')}"),
        _p(f"Id Proof: {ctx.strong('aadhaarNo')}"),
        _p("Centre Code: __________ Centre Name: __________"),
        _p("City: __________ ATC's / C-DAC Centre's Name: __________"),
        _p("1. Do you have any of the following flu-like symptoms:", "bold"),
        _p(f"a. Fever (38 degree or higher): {ctx.strong('fever')}"),
        _p(f"b. Cough: {ctx.strong('cough')}"),
        _p(f"c. Breathlessness: {ctx.strong('breathlessness')}"),
        _p(f"d. Sore Throat: {ctx.strong('soreThroat')}"),
        _p(f"e. Others: {ctx.strong('otherSymptomsDetails')}"),
        _p(
            "2. Have you or an immediate family member come in close contact with a confirmed case "
            "of the coronavirus in the last 14 days? (\"Close contact\" means being at a distance of "
            "less than one meter for more than 15 minutes.)",
            "bold"
        ),
        _p(ctx.strong("closeContact")),
        Spacer(1, 2 * mm),
        _p(
            "I hereby declare that all the information mentioned above is true to the best of my "
            "knowledge and will immediately inform to Covid -19 Central/State Govt. authority, if any "
            "symptoms arise during or after examination."
        ),
        _signature_row(ctx),
    ])
    flowables.extend(_date_place(ctx))
    return flowables


def undertaking(ctx: DocumentContext, company: Company) -> List[Flowable]:
    """Undertaking with the penalty clause."""
    flowables = _header(ctx, company, title="Undertaking")
    flowables.extend([
        _working_for(ctx),
        _final_confirmation(ctx),
        _p("Penalty Clause:", "bold"),
        _numbered([
            "I hereby take a responsibility of all the hardware items provided to me for conduction of "
            "smooth examination will submit once the examination will be over without any damage. If "
            "any damage will be there, you may authorise to charge the penalty equalling to the loss "
            "happen whatever.",
            "I hereby commit for my behaviour during examination. If Exam will be start before 5 minutes "
            "in any slot during the entire Examination and I have the charge of Server Handling, I agree "
            "to penalize myself for this mistake from my side.",
            "I hereby responsible for whatever duties will be given on the centre i.e., CI1, CI2, CI3, "
            "CI4 whatever decided on the centre during examination and if any discrepancy will be occur "
            "from my side for that particular responsibility and eligible for penalty, I am agreeing to "
            "pay the sum of the penalty because of my irresponsible behaviour.",
            "If I would be found guilty in any Suspicious Activity/ Malpractice/ Unethical Behaviour/ "
            "Professional Misconduct during whole Examination Process, Company will fully right to wave "
            "off my all payment whatever I am eligible for taken off during the course.",
            f"All the documents and information whatever I had submitted to {company.name} are correct "
            "and genuine. If any of the document/information found guilty, I would be wholly responsible "
            "for the same and company will fully authorize to take a legal action and no pay-out will be "
            "given to me as a penalty.",
            "If I will backout after this confirmation due to any of the reason, I should be penalized "
            "for the same and debarred to function as a Chief Invigilator in all future Examination of "
            f"{company.name} or their client.",
        ]),
        _p(
            "Company will have penalized me either if any of the above points could be happen or any "
            "other mistake from my side which could be harmful for the Examination and beyond the scope "
            "of work in any manner during the entire project."
        ),
        _p(f"Name: {ctx.strong('name')}"),
        _p(f"Mobile No: {ctx.strong('phone')}"),
    ])

    thumb = ctx.images.load(ctx.candidate.get("thumbprint"))
    stamp = Table(
        [[_box(22, 22), _signature_row(ctx), _image_or_box(thumb, 22, 22)],
         [_p("Revenue Stamp", "caption"), "", _p("Thumb", "caption")]],
        colWidths=[30 * mm, 70 * mm, 30 * mm],
        hAlign="LEFT",
    )
    stamp.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "MIDDLE"), ("ALIGN", (0, 0), (-1, -1), "CENTER")]))
    flowables.extend([Spacer(1, 2 * mm), stamp])
    return flowables


def payout(ctx: DocumentContext, company: Company) -> List[Flowable]:
    """Payout agreement with bank details."""
    flowables = _header(ctx, company, title="Payout", exam_line=False)
    flowables.extend([
        _working_for(ctx),
        _final_confirmation(ctx),
        _p(
            f"I will be agreeing to work as a Chief Invigilator on behalf of {company.name} on the payout "
            "of Rs. <b>___/Day</b> as a remuneration for the No. of days how I should be deployed on the "
            "centre according to allocation on that particular centre."
        ),
    ])

    bank = Table(
        [
            [_p("Account Holder Name:"), _p(ctx.strong("accountHolderName"))],
            [_p("Bank Name:"), _p(ctx.strong("bankName"))],
            [_p("IFSC:"), _p(ctx.strong("ifsc"))],
            [_p("Branch:"), _p(ctx.strong("branch"))],
            [_p("Bank Account No.:"), _p(ctx.strong("bankAccountNo"))],
        ],
        colWidths=[45 * mm, ctx.content_width - 45 * mm],
    )
    bank.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))
    flowables.extend([
        bank,
        Spacer(1, 2 * mm),
        _p("Cancelled cheque/ Passbook copy should be attached for Reference", "small"),
        _p(
            "Note: - Payment will be given for the above duty and attendance whatever applicable from "
            f"{company.name} in your above-mentioned account through IMPS/NEFT or through CASH.",
            "small"
        ),
        _signature_row(ctx),
    ])
    flowables.extend(_date_place(ctx))
    return flowables


def debit_note(ctx: DocumentContext, company: Company) -> List[Flowable]:
    """Authorisation to debit the certification course fee from the payout."""
    flowables = [_p("<u>Debit Note</u>", "title"), Spacer(1, 3 * mm)]
    flowables.extend([
        _working_for(ctx, strong_exam=False),
        _p(
            "I am interested to join a Certification Program i.e., Basic Certificate Course in Online "
            "Exam Management System for the duration of 80 Hours."
        ),
        _p(
            f"To Join this certification program, I am authorizing {company.name} to Debit a Sum of Rs. "
            f"<b>{DEBIT_AMOUNT}</b> from the total payout of {ctx.exam_text('examName', '____')} prior and "
            "after deducting this amount rest of amount will pay me through Bank/ Cash."
        ),
        _signature_row(ctx),
    ])
    flowables.extend(_date_place(ctx))
    return flowables


SectionBuilder = Callable[[DocumentContext], List[Flowable]]

SECTIONS: List[Tuple[str, SectionBuilder]] = [
    ("starparth_appointment_letter", lambda ctx: appointment_letter(ctx, STARPARTH)),
    ("covid_declaration", covid_declaration),
    ("starparth_undertaking", lambda ctx: undertaking(ctx, STARPARTH)),
    ("starparth_payout", lambda ctx: payout(ctx, STARPARTH)),
    ("starparth_debit_note", lambda ctx: debit_note(ctx, STARPARTH)),
    ("netparam_undertaking", lambda ctx: undertaking(ctx, NETPARAM)),
    ("netparam_payout", lambda ctx: payout(ctx, NETPARAM)),
    ("netparam_debit_note", lambda ctx: debit_note(ctx, NETPARAM)),
    ("netparam_appointment_letter", lambda ctx: appointment_letter(ctx, NETPARAM)),
]


def build_sections(ctx: DocumentContext) -> List[Tuple[str, List[Flowable]]]:
    """All bundle sections in print order."""
    return [(name, builder(ctx)) for name, builder in SECTIONS]
