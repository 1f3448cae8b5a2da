# AI service for the medical assistant: a live LangChain/OpenAI client and a
# deterministic offline client sharing the GenerativeClient interface.
import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional

from django.conf import settings
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from healthdecode.exceptions import AIServiceError

from .prompts import DOCUMENT_ANALYSIS_PROMPT

logger = logging.getLogger(__name__)

PROVIDER_OPENAI = 'openai'
PROVIDER_OFFLINE = 'offline'
OFFLINE_MODEL = 'offline-canned-v1'

Message = Dict[str, str]  # {"role": "system" | "user" | "assistant", "content": "..."}


def estimate_tokens(text: str) -> int:
    # Providers are not asked for exact counts; roughly four characters per token
    return math.ceil(len(text) / 4)


def build_usage(prompt: str, completion: str) -> Dict[str, int]:
    prompt_tokens = estimate_tokens(prompt)
    completion_tokens = estimate_tokens(completion)
    return {
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": prompt_tokens + completion_tokens,
    }


@dataclass
class AIResponse:
    content: str
    usage: Dict[str, int]
    model: str
    finish_reason: str = 'stop'

    def usage_metadata(self) -> Dict:
        return {**self.usage, "estimated": True}


def flatten_messages(messages: List[Message]) -> str:
    """
    Combines a message list into the single prompt the provider receives:
    the system message first, then Human/Assistant turns, ending with an
    open Assistant turn.
    """
    system_message = next((m["content"] for m in messages if m["role"] == "system"), "")
    conversation = "\n\n".join(
        f"{'Human' if m['role'] == 'user' else 'Assistant'}: {m['content']}"
        for m in messages
        if m["role"] != "system"
    )
    return f"{system_message}\n\n{conversation}\n\nAssistant:"


def build_analysis_prompt(text: str, report_type: Optional[str]) -> str:
    return (
        f"{DOCUMENT_ANALYSIS_PROMPT}\n\n"
        f"Document Type: {report_type or 'Medical Report'}\n\n"
        f"Document Content:\n{text}"
    )


class GenerativeClient(ABC):
    model: str

    @abstractmethod
    def complete(self, messages: List[Message]) -> AIResponse:
        """Returns the assistant reply for the message list, or raises AIServiceError."""

    def analyze_document(self, text: str, report_type: Optional[str] = None) -> AIResponse:
        return self.complete([{"role": "user", "content": build_analysis_prompt(text, report_type)}])


class LiveGenerativeClient(GenerativeClient):
    """
    Calls the OpenAI chat model through LangChain. The provider keeps no
    conversation state, so every call replays the whole history as one prompt.
    """

    def __init__(self, api_key: str, model: str = 'gpt-3.5-turbo', temperature: float = 0.7,
                 max_tokens: int = 1000, timeout: int = 30):
        if not api_key:
            raise ValueError("OpenAI API key not found. Please set OPENAI_API_KEY in .env file.")

        self.model = model
        self.chat_llm = ChatOpenAI(
            model=model, temperature=temperature, api_key=api_key,
            max_tokens=max_tokens, timeout=timeout, max_retries=0,
        )
        # Lower temperature and a larger budget for document analysis
        self.analysis_llm = ChatOpenAI(
            model=model, temperature=0.3, api_key=api_key,
            max_tokens=2000, timeout=timeout, max_retries=0,
        )
        logger.info(f"LiveGenerativeClient initialized with model: {model}")

    def _invoke(self, llm: ChatOpenAI, prompt: str) -> AIResponse:
        try:
            response = llm.invoke([HumanMessage(content=prompt)])
        except Exception as e:
            logger.error(f"AI provider request failed: {e}")
            raise AIServiceError() from e

        text = response.content if isinstance(response.content, str) else str(response.content)
        return AIResponse(content=text, usage=build_usage(prompt, text), model=self.model)

    def complete(self, messages: List[Message]) -> AIResponse:
        logger.debug(f"LiveGenerativeClient: completing {len(messages)} messages")
        return self._invoke(self.chat_llm, flatten_messages(messages))

    def analyze_document(self, text: str, report_type: Optional[str] = None) -> AIResponse:
        logger.debug(f"LiveGenerativeClient: analyzing document ({len(text)} chars)")
        return self._invoke(self.analysis_llm, build_analysis_prompt(text, report_type))


OFFLINE_ANALYSIS = """## Medical Document Analysis

**Document Type**: {report_type}

Key Findings:
• Blood pressure readings are within normal range
• No significant abnormalities detected in routine labs
• Cholesterol levels are acceptable
• Liver function tests show normal values

Recommendations:
• Continue current medications as prescribed
• Maintain regular exercise routine
• Schedule a follow up appointment in 3 months
• Monitor blood pressure at home weekly

Risk Factors:
• Family history should be reviewed with your doctor
• Cholesterol trends should be monitored over time

Important Notes:
This analysis is for informational purposes only. Please consult with your healthcare provider for medical advice and treatment decisions."""


class OfflineGenerativeClient(GenerativeClient):
    """Deterministic canned responses keyed on words in the latest message."""

    def __init__(self, model: str = OFFLINE_MODEL):
        self.model = model

    @staticmethod
    def _canned_reply(user_content: str) -> str:
        if 'blood test' in user_content or 'lab result' in user_content:
            return (
                "I've analyzed your blood test results. Here are the key findings:\n\n"
                "• **Hemoglobin**: 14.2 g/dL (Normal range: 12.0-15.5 g/dL)\n"
                "• **White Blood Cell Count**: 6,800/μL (Normal range: 4,500-11,000/μL)\n"
                "• **Cholesterol**: 185 mg/dL (Normal: <200 mg/dL)\n\n"
                "Overall, your results look good! Your hemoglobin and WBC count are within normal ranges, "
                "and your cholesterol is at a healthy level. I recommend maintaining your current lifestyle "
                "and scheduling a follow-up in 6 months."
            )
        if 'medication' in user_content or 'drug' in user_content:
            return (
                "I can help you understand medication interactions and side effects. "
                "Please share the names of the medications you're taking, and I'll check for any potential "
                "interactions. Remember to always consult with your healthcare provider before making any "
                "changes to your medication regimen."
            )
        if 'symptoms' in user_content or 'pain' in user_content:
            return (
                "I understand you're experiencing some symptoms. While I can provide general health information, "
                "it's important to consult with a healthcare professional for proper diagnosis and treatment. "
                "Can you describe your symptoms in more detail? This will help me provide better general guidance."
            )
        if 'upload' in user_content or 'report' in user_content:
            return (
                "I can help analyze medical reports, lab results, and imaging studies. "
                "You can upload documents in PDF, image, text, or Word document format, and I'll extract key "
                "information and provide insights in simple terms. Would you like to upload a report for analysis?"
            )
        if re.search(r'\b(hello|hi)\b', user_content):
            return (
                "Hello! I'm your HealthDecode AI assistant. I'm here to help you understand medical reports, "
                "check medication interactions, answer health questions, and provide general medical information. "
                "How can I assist you today?"
            )
        return (
            f"I understand your question about {user_content[:100]}. "
            "Based on current medical knowledge, here's what I can tell you:\n\n"
            "This is an area where individual circumstances matter greatly. I recommend discussing this with "
            "your healthcare provider who can give you personalized advice based on your medical history and "
            "current health status.\n\n"
            "Is there anything specific about this topic you'd like me to explain further?"
        )

    def complete(self, messages: List[Message]) -> AIResponse:
        if not messages:
            raise AIServiceError("No messages to respond to.")
        user_content = messages[-1]["content"].strip().lower()
        reply = self._canned_reply(user_content)
        prompt = "".join(m["content"] for m in messages)
        return AIResponse(content=reply, usage=build_usage(prompt, reply), model=self.model)

    def analyze_document(self, text: str, report_type: Optional[str] = None) -> AIResponse:
        reply = OFFLINE_ANALYSIS.format(report_type=report_type or 'Medical Report')
        return AIResponse(content=reply, usage=build_usage(text, reply), model=self.model)


def build_generative_client(provider: Optional[str] = None, api_key: Optional[str] = None,
                            model: Optional[str] = None) -> GenerativeClient:
    """
    Selects the client variant from configuration. A live client that cannot
    be constructed is replaced by the offline client in an explicit step.
    """
    provider = (provider or settings.AI_PROVIDER).lower()
    api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
    model = model or settings.AI_MODEL

    if provider == PROVIDER_OFFLINE:
        logger.info("Using offline generative client (AI_PROVIDER=offline)")
        return OfflineGenerativeClient()

    if provider != PROVIDER_OPENAI:
        logger.warning(f"Unknown AI_PROVIDER '{provider}', using the offline generative client")
        return OfflineGenerativeClient()

    if not api_key:
        logger.warning("OPENAI_API_KEY is not set, falling back to the offline generative client")
        return OfflineGenerativeClient()

    try:
        return LiveGenerativeClient(
            api_key=api_key, model=model,
            temperature=settings.AI_TEMPERATURE,
            max_tokens=settings.AI_MAX_TOKENS,
            timeout=settings.AI_TIMEOUT_SECONDS,
        )
    except Exception as e:
        logger.warning(f"Failed to initialize the live generative client, falling back to offline: {e}")
        return OfflineGenerativeClient()


@lru_cache(maxsize=None)
def get_generative_client() -> GenerativeClient:
    """Process-wide client, built on first use."""
    return build_generative_client()
