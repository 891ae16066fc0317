"""Prompt templates for the three generation stages."""

from __future__ import annotations

SOURCES_PROMPT = """You are a professional financial research analyst. Your absolute priority is to find OFFICIAL PDF documents for {subject}.

CRITICAL RULE: Every single link provided MUST end with '.pdf'. If a link ends in .html, .aspx, or is a generic IR page, it is REJECTED.

TASK A: Annual Reports (last six fiscal years)
- Find exactly one official PDF per year.
- Acceptable titles: "Annual Report", "Form 10-K", "Universal Registration Document", "Integrated Report".
- Sources: SEC.gov, the company's own investor relations domain, or national regulators.
- Output a markdown table: | Year | Document Title | Direct PDF URL (.pdf only) | Source |

TASK B: Capital Markets Day / Investor Day (same period)
- Find PDFs of presentations or transcripts for Investor Days.
- Output a markdown table: | Event Year | Event Name | Direct PDF URL (.pdf only) | Source |

Format: Section A followed by Section B. Do not include introductory or concluding text. Only the tables. If a PDF is not found for a specific year, leave that year out of the table entirely."""

REPORT_PROMPT = """Based exclusively on the official PDF documents retrieved for {subject}, draft a professional Equity Analyst Report.

Context of identified documents:
{context}

Structure:
1. Executive Summary (150-200 words): Describe the business model, economic quality, and core advantage. End with a one-sentence summary.
2. What They Sell and Who Buys: Summarize products/services and target customers.
3. How They Make Money: Revenue model, recurring vs one-time, key segments.
4. Revenue Quality: Diversification, predictability, and concentration risks.
5. Cost Structure: Key COGS, margins, and scalability.
6. Capital Intensity: Capex needs and cash conversion.
7. Growth Drivers: Levers for expansion (price, volume, M&A).
8. Moat Analysis: Durable competitive advantages (brand, network, cost).

Tone: institutional, factual, objective. Provide a high-density, analytical overview."""

MEMO_PROMPT = """Produce a high-conviction 5-page Investment Memo for {subject}.

Context and previous report:
{context}

Sections to include:
- Executive Summary: Clear investment thesis (1 paragraph).
- Business Model & Unit Economics: How $1 of revenue turns into profit.
- Competitive Position: Moat depth and durability.
- Growth & Sensitivities: Top 3 drivers and what could break them.
- Risk Framework: Detailed failure modes (Macro, Execution, Regulatory).
- 12-Month KPI Watch List: Specific metrics for investors to track.

Format as a formal document for an Investment Committee."""
