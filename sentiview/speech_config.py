from google.cloud.speech_v2.types import cloud_speech

from sentiview.config import get_recognizer_name
from sentiview.deps import get_project_id

# LINEAR 16 PCM 16kHz mono for better results
SAMPLE_RATE_HERTZ = 16000


def to_speech_language_code(language: str) -> str:
    if language == "en":
        return "en-US"
    return f"{language}-IN"


def get_streaming_config_request(language: str = "en") -> cloud_speech.StreamingRecognizeRequest:
    st_config = cloud_speech.RecognitionConfig(
        explicit_decoding_config=cloud_speech.ExplicitDecodingConfig(
            encoding=cloud_speech.ExplicitDecodingConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=SAMPLE_RATE_HERTZ,
            audio_channel_count=1,
        ),
        language_codes=[to_speech_language_code(language)],
        model="long",  # chirp3 doesnt support interim results
        features=cloud_speech.RecognitionFeatures(
            enable_automatic_punctuation=True,
        ),
    )
    streaming_config = cloud_speech.StreamingRecognitionConfig(
        config=st_config,
        streaming_features=cloud_speech.StreamingRecognitionFeatures(
            interim_results=True,
        ),
    )
    return cloud_speech.StreamingRecognizeRequest(
        recognizer=f"projects/{get_project_id()}" + get_recognizer_name(),
        streaming_config=streaming_config,
    )


def get_audio_request(chunk: bytes) -> cloud_speech.StreamingRecognizeRequest:
    return cloud_speech.StreamingRecognizeRequest(audio=chunk)
