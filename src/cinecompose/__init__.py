"""cinecompose: transcript-driven cinematic auto-editing.

Turn word-timestamped speech plus AI-suggested effects and B-roll into a
composition plan (captions, effects, overlays, segment presets), then
render that plan frame by frame over the source video and mux the result
with the original audio. Jobs are declared in YAML manifests.
"""
