"""Legal reference catalog for Korean medical advertising rules, and citation resolution."""

from __future__ import annotations

from typing import Dict, Iterable, List

from adscreen.models.schemas import Finding, ReferenceEntry

LEGAL_GUIDELINES_TEXT = """Precedence: Medical Service Act (top) -> Enforcement Decree (delegated details) -> Ministry of Health and Welfare practice guide (cases/checklists) -> self-regulatory review body standards (operating trends)

1) Medical Service Act Article 56: prohibited medical advertising
1-1. Who may advertise
- Only medical institution founders, heads of medical institutions and medical personnel may advertise medical services.
- Medical advertising means presenting information about medical practice, institutions or personnel to consumers through newspapers, magazines, audio, video, the internet, print, signage and similar media.

1-2. Prohibited advertising types (15)
1) New medical technology that has not been evaluated
2) Treatment testimonials or other content that may mislead about treatment effects
3) False content
4) Comparison with other providers' functions or treatment methods
5) Defamation of other providers
6) Exposure of surgery scenes or direct procedures
7) Omission of important information such as serious side effects
8) Exaggeration of objective facts
9) Claiming qualifications or titles without legal basis
10) Advertising disguised as articles or expert opinions
11) Advertising without prior review, or differing from the reviewed content
12) Domestic advertising aimed at attracting foreign patients
13) Misleading discounts or waivers of non-covered treatment fees
14) Use of awards, letters of appreciation, certification, guarantee or recommendation
15) Other advertising harmful to public health or fair competition as set by Presidential Decree

1-3. Prohibited channels
- Medical advertising may not be broadcast under the Broadcasting Act.

2) Medical Service Act Article 57: prior review of medical advertising
2-1. Media requiring prior review: newspapers, internet newspapers and periodicals; outdoor advertisements (banners, posters, flyers, transit displays); electronic signboards; internet media set by Presidential Decree (including apps); other media set by Presidential Decree.
2-2. Reviewing bodies: medical, dental and oriental medicine associations, and qualifying consumer organizations.
2-3. Review exemptions: institution name, address, phone number, departments, and the name, gender and licence type of staff.
2-4. Review validity is three years from approval; re-apply six months before expiry to continue.

3) Medical Service Act Article 57-2: medical advertising review committees

4) Enforcement Decree Article 24: media and body requirements for prior review
- Internet news services, broadcaster homepages, services with 100,000+ daily users, and SNS advertising media with 100,000+ daily users."""

LEGAL_REFERENCES: List[ReferenceEntry] = [
    ReferenceEntry(id="ML56-01", title="Medical Service Act Art. 56", clause="1) Unevaluated new medical technology",
                   excerpt="Advertising new medical technology that has not been evaluated is prohibited. (summary)"),
    ReferenceEntry(id="ML56-02", title="Medical Service Act Art. 56", clause="2) Testimonials misleading about treatment effects",
                   excerpt="Testimonials or content that may mislead consumers about treatment effects are prohibited. (summary)"),
    ReferenceEntry(id="ML56-03", title="Medical Service Act Art. 56", clause="3) False content",
                   excerpt="Advertising with false content is prohibited. (summary)"),
    ReferenceEntry(id="ML56-04", title="Medical Service Act Art. 56", clause="4) Comparative advertising",
                   excerpt="Comparing functions or treatment methods with other providers is prohibited. (summary)"),
    ReferenceEntry(id="ML56-05", title="Medical Service Act Art. 56", clause="5) Defamatory advertising",
                   excerpt="Advertising that defames other providers is prohibited. (summary)"),
    ReferenceEntry(id="ML56-06", title="Medical Service Act Art. 56", clause="6) Exposure of direct procedures",
                   excerpt="Advertising that shows surgery scenes or direct procedures is prohibited. (summary)"),
    ReferenceEntry(id="ML56-07", title="Medical Service Act Art. 56", clause="7) Omission of important information",
                   excerpt="Advertising that omits important information such as serious side effects is prohibited. (summary)"),
    ReferenceEntry(id="ML56-08", title="Medical Service Act Art. 56", clause="8) Exaggeration of objective facts",
                   excerpt="Advertising that exaggerates objective facts is prohibited. (summary)"),
    ReferenceEntry(id="ML56-09", title="Medical Service Act Art. 56", clause="9) Qualifications or titles without legal basis",
                   excerpt="Claiming qualifications or titles without legal basis is prohibited. (summary)"),
    ReferenceEntry(id="ML56-10", title="Medical Service Act Art. 56", clause="10) Advertising disguised as articles or expert opinions",
                   excerpt="Advertising packaged as news articles or expert opinions is prohibited. (summary)"),
    ReferenceEntry(id="ML56-11", title="Medical Service Act Art. 56", clause="11) Missing or deviating from prior review",
                   excerpt="Advertising without prior review, or differing from reviewed content, is prohibited. (summary)"),
    ReferenceEntry(id="ML56-12", title="Medical Service Act Art. 56", clause="12) Domestic advertising for foreign patients",
                   excerpt="Domestic advertising aimed at attracting foreign patients is restricted. (summary)"),
    ReferenceEntry(id="ML56-13", title="Medical Service Act Art. 56", clause="13) Discounts or waivers of non-covered fees",
                   excerpt="Misleading discounts or waivers of non-covered treatment fees are prohibited. (summary)"),
    ReferenceEntry(id="ML56-14", title="Medical Service Act Art. 56", clause="14) Awards, certification, guarantee or recommendation",
                   excerpt="Advertising using awards, certification, guarantee or recommendation expressions is prohibited. (summary)"),
    ReferenceEntry(id="ML56-15", title="Medical Service Act Art. 56", clause="15) Harm to public health or fair competition",
                   excerpt="Advertising that harms public health, fair competition or consumers is restricted. (summary)"),
    ReferenceEntry(id="ML57-01", title="Medical Service Act Art. 57", clause="Media subject to prior review",
                   excerpt="Newspapers, internet newspapers, periodicals, electronic signboards and designated internet media require prior review. (summary)"),
    ReferenceEntry(id="ML57-02", title="Medical Service Act Art. 57", clause="Reviewing body requirements",
                   excerpt="Medical associations and qualifying consumer organizations may perform review. (summary)"),
    ReferenceEntry(id="ML57-03", title="Medical Service Act Art. 57", clause="Review exemptions (basic information)",
                   excerpt="Basic information such as name, address, contact and departments may be advertised without review. (summary)"),
    ReferenceEntry(id="ML57-2-01", title="Medical Service Act Art. 57-2", clause="Review committee operation",
                   excerpt="Self-regulatory bodies must set up and operate a review committee. (summary)"),
    ReferenceEntry(id="ML24-01", title="Enforcement Decree Art. 24", clause="Internet and advertising media definitions",
                   excerpt="Includes internet news services, broadcaster homepages and SNS with 100,000+ daily users (apps included). (summary)"),
]

LEGAL_REFERENCE_MAP: Dict[str, ReferenceEntry] = {ref.id: ref for ref in LEGAL_REFERENCES}

LEGAL_REFERENCE_LIST_TEXT = "\n".join(f"{ref.id}: {ref.title} - {ref.clause}" for ref in LEGAL_REFERENCES)

# Disclosure-procedure clauses cited on every result.
BASELINE_REFERENCE_IDS = ("ML57-01", "ML24-01")

LEGAL_SUMMARY_MARKER = "Legal summary"
LEGAL_NOTES = (
    "This is a reference-only result based on medical advertising guidelines. "
    "Final legal decisions should be made through official review."
)


def placeholder_reference(reference_id: str) -> ReferenceEntry:
    return ReferenceEntry(
        id=reference_id,
        title="Legal reference",
        clause="Reference summary",
        excerpt="No summary is available for this reference.",
    )


def resolve_references(
    findings: Iterable[Finding],
    catalog: Dict[str, ReferenceEntry] = LEGAL_REFERENCE_MAP,
    baseline_ids: Iterable[str] = BASELINE_REFERENCE_IDS,
) -> List[ReferenceEntry]:
    references: Dict[str, ReferenceEntry] = {}
    for finding in findings:
        ref_id = (finding.reference_id or "").strip()
        if not ref_id:
            continue
        references.setdefault(ref_id, catalog.get(ref_id) or placeholder_reference(ref_id))

    for ref_id in baseline_ids:
        if ref_id in catalog:
            references.setdefault(ref_id, catalog[ref_id])
    return list(references.values())


def build_legal_details(findings: List[Finding]) -> str:
    if not findings:
        return "No risky phrases were detected in the OCR text."
    lines = []
    for finding in findings:
        ref_label = f" ({finding.reference_id})" if finding.reference_id else ""
        lines.append(f'- "{finding.text}": {finding.violation_type}{ref_label}')
    return f"Detected {len(findings)} potentially risky phrases.\n" + "\n".join(lines)


def build_legal_summary(findings: List[Finding]) -> str:
    return f"{build_legal_details(findings)}\n\n{LEGAL_NOTES}"


def append_legal_summary(narrative: str, legal_summary: str) -> str:
    return f"{narrative}\n\n{LEGAL_SUMMARY_MARKER}:\n{legal_summary}"
