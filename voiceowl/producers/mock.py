"""Mock transcription producer: simulated download plus canned, language-keyed text."""

import asyncio
import random
from typing import Dict, List, Optional

from voiceowl.errors import ProducerError
from voiceowl.producers.base import TranscriptionProducer
from voiceowl.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_LANGUAGE = "en-US"

SAMPLE_TRANSCRIPTIONS: Dict[str, List[str]] = {
    "en-US": [
        "This is a sample transcription text.",
        "Hello, this is a test audio file being transcribed.",
        "The quick brown fox jumps over the lazy dog. This is a sample transcription.",
        "Welcome to the voice transcription service. Your audio has been processed successfully.",
        "This audio contains sample content for testing the transcription functionality.",
    ],
    "fr-FR": [
        "Ceci est un exemple de texte de transcription.",
        "Bonjour, ceci est un fichier audio de test en cours de transcription.",
        "Le renard brun rapide saute par-dessus le chien paresseux. Ceci est un exemple de transcription.",
        "Bienvenue dans le service de transcription vocale. Votre audio a été traité avec succès.",
        "Cet audio contient un contenu d'exemple pour tester la fonctionnalité de transcription.",
    ],
    "es-ES": [
        "Este es un texto de transcripción de muestra.",
        "Hola, este es un archivo de audio de prueba que se está transcribiendo.",
        "El zorro marrón rápido salta sobre el perro perezoso. Esta es una transcripción de muestra.",
        "Bienvenido al servicio de transcripción de voz. Su audio ha sido procesado exitosamente.",
        "Este audio contiene contenido de muestra para probar la funcionalidad de transcripción.",
    ],
    "de-DE": [
        "Dies ist ein Beispiel-Transkriptionstext.",
        "Hallo, dies ist eine Test-Audiodatei, die transkribiert wird.",
        "Der schnelle braune Fuchs springt über den faulen Hund. Dies ist eine Beispieltranskription.",
        "Willkommen beim Sprachtranskriptionsdienst. Ihr Audio wurde erfolgreich verarbeitet.",
        "Dieses Audio enthält Beispielinhalte zum Testen der Transkriptionsfunktionalität.",
    ],
    "it-IT": [
        "Questo è un testo di trascrizione di esempio.",
        "Ciao, questo è un file audio di test che viene trascritto.",
        "La volpe marrone veloce salta sopra il cane pigro. Questa è una trascrizione di esempio.",
        "Benvenuto nel servizio di trascrizione vocale. Il tuo audio è stato elaborato con successo.",
        "Questo audio contiene contenuti di esempio per testare la funzionalità di trascrizione.",
    ],
    "pt-BR": [
        "Este é um texto de transcrição de exemplo.",
        "Olá, este é um arquivo de áudio de teste sendo transcrito.",
        "A raposa marrom rápida pula sobre o cão preguiçoso. Esta é uma transcrição de exemplo.",
        "Bem-vindo ao serviço de transcrição de voz. Seu áudio foi processado com sucesso.",
        "Este áudio contém conteúdo de exemplo para testar a funcionalidade de transcrição.",
    ],
    "ja-JP": [
        "これはサンプルの転写テキストです。",
        "こんにちは、これは転写されているテストオーディオファイルです。",
        "素早い茶色のキツネが怠惰な犬の上を跳び越えます。これはサンプルの転写です。",
        "音声転写サービスへようこそ。あなたのオーディオは正常に処理されました。",
        "このオーディオには転写機能をテストするためのサンプルコンテンツが含まれています。",
    ],
    "ko-KR": [
        "이것은 샘플 전사 텍스트입니다.",
        "안녕하세요, 이것은 전사되고 있는 테스트 오디오 파일입니다.",
        "빠른 갈색 여우가 게으른 개를 뛰어넘습니다. 이것은 샘플 전사입니다.",
        "음성 전사 서비스에 오신 것을 환영합니다. 귀하의 오디오가 성공적으로 처리되었습니다.",
        "이 오디오에는 전사 기능을 테스트하기 위한 샘플 콘텐츠가 포함되어 있습니다.",
    ],
    "zh-CN": [
        "这是一个示例转录文本。",
        "你好，这是一个正在被转录的测试音频文件。",
        "敏捷的棕色狐狸跳过懒惰的狗。这是一个示例转录。",
        "欢迎来到语音转录服务。您的音频已成功处理。",
        "此音频包含用于测试转录功能的示例内容。",
    ],
}

WORKFLOW_TRANSCRIPTIONS: Dict[str, List[str]] = {
    "en-US": [
        "This workflow demonstrates transcription processing with review and approval stages.",
        "Audio content processed through automated workflow system for quality assurance.",
        "Transcription workflow includes multiple validation steps for accuracy.",
        "Sample audio processed through comprehensive review pipeline.",
    ],
    "fr-FR": [
        "Ce flux de travail démontre le traitement de transcription avec des étapes de révision et d'approbation.",
        "Contenu audio traité via un système de flux de travail automatisé pour l'assurance qualité.",
    ],
    "es-ES": [
        "Este flujo de trabajo demuestra el procesamiento de transcripción con etapas de revisión y aprobación.",
        "Contenido de audio procesado a través de un sistema de flujo de trabajo automatizado para control de calidad.",
    ],
}


def pick_transcription(
    catalog: Dict[str, List[str]],
    language: str,
    rng: Optional[random.Random] = None,
) -> str:
    """Random canned text for ``language``, falling back to en-US."""
    choices = catalog.get(language) or catalog[DEFAULT_LANGUAGE]
    return (rng or random).choice(choices)


class MockTranscriptionProducer(TranscriptionProducer):
    """
    Pretends to download the audio and returns canned text.

    ``failure_rate`` is the probability that the simulated download fails.
    """

    source = "mock"

    def __init__(
        self,
        failure_rate: float = 0.0,
        download_delay: float = 0.3,
        catalog: Optional[Dict[str, List[str]]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.failure_rate = failure_rate
        self.download_delay = download_delay
        self.catalog = catalog or SAMPLE_TRANSCRIPTIONS
        self._rng = rng or random.Random()

    async def produce(self, audio_url: str, language: str = DEFAULT_LANGUAGE) -> str:
        await self._download(audio_url)
        text = pick_transcription(self.catalog, language, self._rng)
        logger.debug("Generated mock transcription (%s): %s", language, text)
        return text

    async def _download(self, audio_url: str) -> None:
        logger.info("Mocking audio download from %s", audio_url)
        if self.download_delay:
            await asyncio.sleep(self.download_delay)
        if self._rng.random() < self.failure_rate:
            raise ProducerError("Audio download failed - network timeout")
