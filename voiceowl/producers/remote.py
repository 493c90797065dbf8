"""
Remote speech producer (Azure Speech, simulated).

The remote call is flaky by design; every attempt is independent and the
whole call is wrapped in :func:`with_retry`. Callers decide what to do once
the policy is exhausted (see ``TranscriptionService``).
"""

import asyncio
import random
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from voiceowl.errors import ProducerError
from voiceowl.logging_config import get_logger
from voiceowl.producers.base import TranscriptionProducer
from voiceowl.producers.mock import DEFAULT_LANGUAGE, pick_transcription
from voiceowl.producers.retry import RetryPolicy, with_retry

logger = get_logger(__name__)

PLACEHOLDER_KEY = "mock-azure-key"

AZURE_TRANSCRIPTIONS: Dict[str, List[str]] = {
    "en-US": [
        "This audio has been transcribed using Azure Speech Services.",
        "Azure Cognitive Services successfully processed this audio content.",
        "Voice recognition completed using Microsoft Azure Speech-to-Text API.",
        "Azure Speech Service has converted this audio to text with high accuracy.",
        "Microsoft Azure provided this transcription with confidence score: 0.95",
    ],
    "fr-FR": [
        "Cet audio a été transcrit en utilisant les services de reconnaissance vocale Azure.",
        "Azure Cognitive Services a traité avec succès ce contenu audio.",
        "La reconnaissance vocale a été complétée en utilisant l'API Speech-to-Text de Microsoft Azure.",
        "Le service Azure Speech a converti cet audio en texte avec une grande précision.",
        "Microsoft Azure a fourni cette transcription avec un score de confiance de 0.95",
    ],
    "es-ES": [
        "Este audio ha sido transcrito usando los servicios de voz de Azure.",
        "Azure Cognitive Services procesó exitosamente este contenido de audio.",
        "El reconocimiento de voz se completó usando la API Speech-to-Text de Microsoft Azure.",
        "El servicio Azure Speech ha convertido este audio a texto con alta precisión.",
        "Microsoft Azure proporcionó esta transcripción con un puntaje de confianza de 0.95",
    ],
    "de-DE": [
        "Diese Audio wurde mit Azure Speech Services transkribiert.",
        "Azure Cognitive Services hat diesen Audioinhalt erfolgreich verarbeitet.",
        "Die Spracherkennung wurde mit der Microsoft Azure Speech-to-Text API abgeschlossen.",
        "Der Azure Speech Service hat dieses Audio mit hoher Genauigkeit in Text umgewandelt.",
        "Microsoft Azure stellte diese Transkription mit einem Konfidenzwert von 0.95 bereit",
    ],
    "it-IT": [
        "Questo audio è stato trascritto utilizzando i servizi di riconoscimento vocale di Azure.",
        "Azure Cognitive Services ha elaborato con successo questo contenuto audio.",
        "Il riconoscimento vocale è stato completato utilizzando l'API Speech-to-Text di Microsoft Azure.",
        "Il servizio Azure Speech ha convertito questo audio in testo con alta precisione.",
        "Microsoft Azure ha fornito questa trascrizione con un punteggio di confidenza di 0.95",
    ],
    "pt-BR": [
        "Este áudio foi transcrito usando os serviços de fala do Azure.",
        "Os Serviços Cognitivos do Azure processaram com sucesso este conteúdo de áudio.",
        "O reconhecimento de voz foi concluído usando a API Speech-to-Text do Microsoft Azure.",
        "O serviço Azure Speech converteu este áudio em texto com alta precisão.",
        "A Microsoft Azure forneceu esta transcrição com uma pontuação de confiança de 0.95",
    ],
    "ja-JP": [
        "このオーディオはAzure音声サービスを使用して転写されました。",
        "Azure Cognitive Servicesがこのオーディオコンテンツを正常に処理しました。",
        "Microsoft Azure Speech-to-Text APIを使用して音声認識が完了しました。",
        "Azure音声サービスがこのオーディオを高精度でテキストに変換しました。",
        "Microsoft Azureが信頼度スコア0.95でこの転写を提供しました",
    ],
    "ko-KR": [
        "이 오디오는 Azure 음성 서비스를 사용하여 전사되었습니다.",
        "Azure Cognitive Services가 이 오디오 콘텐츠를 성공적으로 처리했습니다.",
        "Microsoft Azure Speech-to-Text API를 사용하여 음성 인식이 완료되었습니다.",
        "Azure Speech Service가 이 오디오를 높은 정확도로 텍스트로 변환했습니다.",
        "Microsoft Azure가 0.95의 신뢰도 점수로 이 전사를 제공했습니다",
    ],
    "zh-CN": [
        "此音频已使用Azure语音服务进行转录。",
        "Azure认知服务已成功处理此音频内容。",
        "使用Microsoft Azure语音转文本API完成了语音识别。",
        "Azure语音服务已高精度地将此音频转换为文本。",
        "Microsoft Azure提供了此转录，置信度得分为0.95",
    ],
}


class RemoteSpeechProducer(TranscriptionProducer):
    """
    Simulated Azure Speech-to-Text client.

    Args:
        speech_key: Subscription key; the placeholder only triggers a warning.
        region: Service region, required.
        policy: Retry policy for the speech call.
        failure_rate: Probability that a single speech call fails.
        download_failure_rate: Probability that the audio download fails.
        latency: Simulated seconds per speech call.
        download_delay: Simulated seconds for the audio download.
    """

    source = "azure"

    def __init__(
        self,
        speech_key: str,
        region: str,
        policy: Optional[RetryPolicy] = None,
        failure_rate: float = 0.3,
        download_failure_rate: float = 0.1,
        latency: float = 0.8,
        download_delay: float = 0.6,
        rng: Optional[random.Random] = None,
    ):
        self.speech_key = speech_key
        self.region = region
        self.policy = policy or RetryPolicy()
        self.failure_rate = failure_rate
        self.download_failure_rate = download_failure_rate
        self.latency = latency
        self.download_delay = download_delay
        self._rng = rng or random.Random()

    def validate_config(self) -> None:
        if not self.speech_key or self.speech_key == PLACEHOLDER_KEY:
            logger.warning("Using mock Azure configuration. Set AZURE_SPEECH_KEY for production.")
        if not self.region:
            raise ProducerError("AZURE_REGION is required for Azure Speech Service")

    async def produce(self, audio_url: str, language: str = DEFAULT_LANGUAGE) -> str:
        self.validate_config()
        await self._download(audio_url)

        attempt = 0

        async def _call() -> str:
            nonlocal attempt
            attempt += 1
            return await self._recognize(audio_url, language, attempt)

        text = await with_retry(_call, self.policy, context="Azure Speech Service call")
        logger.info("Azure transcription completed for %s (%s)", audio_url, language)
        return text

    async def health(self) -> Dict[str, Any]:
        """Simulated service health check."""
        await asyncio.sleep(0.2 if self.latency else 0)
        return {
            "status": "healthy" if self._rng.random() > 0.1 else "degraded",
            "region": self.region,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def _download(self, audio_url: str) -> None:
        logger.info("Downloading audio for Azure processing: %s", audio_url)
        if self.download_delay:
            await asyncio.sleep(self.download_delay)
        if self._rng.random() < self.download_failure_rate:
            raise ProducerError("Failed to download audio for Azure processing")

    async def _recognize(self, audio_url: str, language: str, attempt: int) -> str:
        logger.debug("Azure Speech API call attempt %d for %s (%s)", attempt, audio_url, language)
        if self.latency:
            await asyncio.sleep(self.latency)
        if self._rng.random() < self.failure_rate:
            raise ProducerError(
                f"Azure Speech API error: Service temporarily unavailable (attempt {attempt})"
            )
        return pick_transcription(AZURE_TRANSCRIPTIONS, language, self._rng)
