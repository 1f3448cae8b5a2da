# medassist/agents/report_analysis_graph.py

import logging
from typing import Dict, Optional, TypedDict

from langgraph.graph import END, StateGraph

from medassist.analysis import build_analysis_bundle

logger = logging.getLogger(__name__)


# --- LangGraph State Definition ---
class ReportAnalysisState(TypedDict, total=False):
    report_id: int
    extracted_text: str
    report_type: str
    raw_response: Optional[str]
    model: Optional[str]
    usage: Optional[Dict[str, int]]
    analysis: Optional[Dict]
    error_message: Optional[str]


def build_report_analysis_graph(client):
    """Compiles generate_node -> parse_node around the given generative client."""

    # Generation Agent
    def generate_node(state: ReportAnalysisState) -> ReportAnalysisState:
        logger.debug("[AGENT GENERATE] === ENTERING generate_node ===")
        new_state = state.copy()
        new_state["raw_response"] = None
        new_state["error_message"] = None

        text = (state.get("extracted_text") or "").strip()
        if not text:
            new_state["error_message"] = "No extracted text to analyze."
            return new_state

        try:
            response = client.analyze_document(text, state.get("report_type"))
        except Exception as e:
            logger.error(f"[AGENT GENERATE] Analysis request failed for report {state.get('report_id')}: {e}")
            new_state["error_message"] = "AI analysis service unavailable."
            return new_state

        if not response.content or not response.content.strip():
            new_state["error_message"] = "AI analysis returned no content."
            return new_state

        new_state["raw_response"] = response.content.strip()
        new_state["model"] = response.model
        new_state["usage"] = response.usage_metadata()
        logger.info(f"[AGENT GENERATE] Analysis generated (first 100 chars): {new_state['raw_response'][:100]}...")
        return new_state

    # Parsing Agent
    def parse_node(state: ReportAnalysisState) -> ReportAnalysisState:
        logger.debug("[AGENT PARSE] === ENTERING parse_node ===")
        new_state = state.copy()
        try:
            new_state["analysis"] = build_analysis_bundle(state["raw_response"])
        except Exception as e:
            logger.exception(f"[AGENT PARSE] Could not parse analysis response: {e}")
            new_state["analysis"] = None
            new_state["error_message"] = "Could not parse the analysis response."
        return new_state

    def route_after_generate(state: ReportAnalysisState) -> str:
        return END if state.get("error_message") else "parse_node"

    workflow = StateGraph(ReportAnalysisState)
    workflow.add_node("generate_node", generate_node)
    workflow.add_node("parse_node", parse_node)
    workflow.set_entry_point("generate_node")
    workflow.add_conditional_edges("generate_node", route_after_generate, {"parse_node": "parse_node", END: END})
    workflow.add_edge("parse_node", END)
    return workflow.compile()


class DocumentAnalysisService:
    """Runs the analysis graph for a report and records the one-way status transition."""

    def __init__(self, client):
        self.graph = build_report_analysis_graph(client)

    def analyze(self, report):
        logger.info(f"[ANALYSIS] Starting analysis of report {report.pk} ({report.report_type})")
        try:
            final_state = self.graph.invoke({
                "report_id": report.pk,
                "extracted_text": report.extracted_text,
                "report_type": report.get_report_type_display(),
            })
        except Exception as e:
            logger.exception(f"[ANALYSIS] Analysis graph crashed for report {report.pk}: {e}")
            final_state = {"error_message": "Analysis pipeline error."}

        analysis = final_state.get("analysis")
        if analysis and not final_state.get("error_message"):
            report.mark_completed(analysis, {
                "model": final_state.get("model"),
                "usage": final_state.get("usage"),
            })
            logger.info(f"[ANALYSIS] Report {report.pk} completed with {len(analysis['key_findings'])} findings")
        else:
            report.mark_failed()
            logger.warning(f"[ANALYSIS] Report {report.pk} failed: {final_state.get('error_message')}")
        return report
