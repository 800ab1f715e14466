from collections import OrderedDict

import pytest

from clipmgr_backend.features.workflow import ExtractedParameters, LoraEntry, extract_parameters


def _node(kind, **inputs):
    return {"class_type": kind, "inputs": inputs}


@pytest.mark.parametrize("graph", [None, {}, [], "not a graph", 42])
def test_empty_or_invalid_graph_yields_empty_record(graph) -> None:
    params = extract_parameters(graph)
    assert params == ExtractedParameters()
    assert params.is_empty()
    assert params.loras == ()


def test_graph_of_null_nodes_yields_empty_record() -> None:
    graph = {"1": None, "2": None, "3": {"class_type": "KSampler"}}
    assert extract_parameters(graph).is_empty()


def test_unknown_node_kinds_are_ignored() -> None:
    graph = {
        "1": _node("SomeCustomNode", text="a long prompt that is not ours"),
        "2": _node("KSampler", steps=20),
    }
    params = extract_parameters(graph)
    assert params.prompt is None
    assert params.steps == 20


def test_primitive_string_feeds_text_encoder() -> None:
    graph = {
        "1": _node("PrimitiveStringMultiline", value="a cat walking on the beach"),
        "2": _node("CLIPTextEncode", text=["1", 0]),
    }
    assert extract_parameters(graph).prompt == "a cat walking on the beach"


def test_first_text_encoder_wins_and_short_text_is_skipped() -> None:
    graph = {
        "1": _node("CLIPTextEncode", text="short"),
        "2": _node("CLIPTextEncode", text="a lighthouse at dusk, cinematic"),
        "3": _node("CLIPTextEncode", text="a second long positive prompt"),
    }
    assert extract_parameters(graph).prompt == "a lighthouse at dusk, cinematic"


def test_negative_marker_routes_text_to_negative_prompt() -> None:
    graph = {
        "1": _node("CLIPTextEncode", text="Worst Quality, blurry, jpeg artifacts"),
        "2": _node("CLIPTextEncode", text="a red fox in fresh snow"),
        "3": _node("CLIPTextEncode", text="色调艳丽，过曝，低质量"),
    }
    params = extract_parameters(graph)
    assert params.prompt == "a red fox in fresh snow"
    assert params.negative_prompt == "色调艳丽，过曝，低质量"


def test_negative_encoder_after_positive_prompt_is_still_read() -> None:
    graph = OrderedDict(
        [
            ("6", _node("CLIPTextEncode", text="a red fox in fresh snow")),
            ("7", _node("CLIPTextEncode", text="worst quality, blurry")),
        ]
    )
    params = extract_parameters(graph)
    assert params.prompt == "a red fox in fresh snow"
    assert params.negative_prompt == "worst quality, blurry"


def test_custom_negative_markers() -> None:
    graph = {"1": _node("CLIPTextEncode", text="ugly, deformed hands everywhere")}
    params = extract_parameters(graph, negative_markers=["deformed"])
    assert params.prompt is None
    assert params.negative_prompt == "ugly, deformed hands everywhere"


@pytest.mark.parametrize("wildcard_first", [True, False])
def test_wildcard_processor_always_wins(wildcard_first) -> None:
    encoder = ("1", _node("CLIPTextEncode", text="a plain text encoder prompt"))
    wildcard = ("2", _node("ImpactWildcardProcessor", populated_text="a dragon over {red|blue} hills"))
    items = [wildcard, encoder] if wildcard_first else [encoder, wildcard]
    params = extract_parameters(OrderedDict(items))
    assert params.prompt == "a dragon over {red|blue} hills"


def test_lora_selectors_keep_declared_order() -> None:
    graph = {
        "1": _node("WanVideoLoraSelect", lora="first.safetensors", strength=0.7),
        "2": _node("WanVideoLoraSelect", lora="none", strength=1.0),
        "3": _node("WanVideoLoraSelectMulti", lora="second.safetensors", strength_0=0.3),
        "4": _node("LoraLoader", lora_name="third.safetensors", strength_model=0.0, strength_clip=0.9),
        "5": _node("LoraLoaderModelOnly", lora_name="fourth.safetensors"),
    }
    assert extract_parameters(graph).loras == (
        LoraEntry("first.safetensors", 0.7),
        LoraEntry("second.safetensors", 0.3),
        LoraEntry("third.safetensors", 0.0),
        LoraEntry("fourth.safetensors", 1.0),
    )


def test_lora_manager_list_and_wrapped_forms() -> None:
    graph = {
        "1": _node(
            "Lora Loader (LoraManager)",
            loras=[
                {"name": "style", "strength": 0.8, "active": True},
                {"name": "disabled", "strength": 1.0, "active": False},
            ],
        ),
        "2": _node("Lora Loader (LoraManager)", loras={"__value__": [{"name": "detail", "strength": "0.5"}]}),
    }
    assert extract_parameters(graph).loras == (LoraEntry("style", 0.8), LoraEntry("detail", 0.5))


def test_two_gguf_loaders_are_joined() -> None:
    graph = {
        "1": _node("UnetLoaderGGUF", unet_name="wan2.2_high_noise.gguf"),
        "2": _node("UnetLoaderGGUF", unet_name="wan2.2_low_noise.gguf"),
    }
    assert extract_parameters(graph).model == "wan2.2_high_noise.gguf + wan2.2_low_noise.gguf"


def test_model_loader_prefers_high_noise_variant() -> None:
    graph = {
        "1": _node("WanVideoModelLoader", model="wan2.2_t2v_LOW_14B.safetensors"),
        "2": _node("WanVideoModelLoader", model="wan2.2_t2v_HIGH_14B.safetensors"),
        "3": _node("WanVideoModelLoader", model="wan2.2_t2v_other.safetensors"),
    }
    assert extract_parameters(graph).model == "wan2.2_t2v_HIGH_14B.safetensors"


def test_checkpoint_only_fills_missing_model() -> None:
    graph = {
        "1": _node("WanVideoModelLoader", model="wan_i2v.safetensors"),
        "2": _node("CheckpointLoaderSimple", ckpt_name="sdxl.safetensors"),
    }
    assert extract_parameters(graph).model == "wan_i2v.safetensors"
    assert extract_parameters({"2": graph["2"]}).model == "sdxl.safetensors"


def test_sampler_fields_and_video_settings() -> None:
    graph = {
        "1": _node(
            "KSamplerAdvanced",
            steps=20,
            cfg=7,
            noise_seed=1234,
            sampler_name="euler",
            scheduler="normal",
        ),
        "2": _node(
            "WanVideoSampler",
            steps=30,
            cfg=6.0,
            seed=["9", 0],
            sampler_name="unipc",
            scheduler="simple",
        ),
        "9": _node("Seed (rgthree)", seed=42),
        "3": _node("VHS_VideoCombine", frame_rate=16),
        "4": _node("WanVideoEmptyEmbeds", num_frames=81, width=832.0, height=480),
        "5": _node("WanVideoVAELoader", model_name="wan_vae.safetensors"),
        "6": _node("CLIPLoader", clip_name="umt5_xxl.safetensors"),
        "7": _node("Width and height from aspect ratio 🦴", aspect_ratio="16:9"),
    }
    params = extract_parameters(graph)
    assert params.steps == 30
    assert params.cfg == 6.0
    assert params.seed == 42
    assert params.sampler == "unipc"
    assert params.scheduler == "simple"
    assert params.frame_rate == 16
    assert params.num_frames == 81
    assert params.resolution == "832x480"
    assert params.vae_model == "wan_vae.safetensors"
    assert params.clip_model == "umt5_xxl.safetensors"
    assert params.aspect_ratio == "16:9"


def test_hunyuan_latent_uses_length() -> None:
    graph = {"1": _node("EmptyHunyuanLatentVideo", length=49, width=1280, height=720)}
    params = extract_parameters(graph)
    assert params.num_frames == 49
    assert params.resolution == "1280x720"


def test_broken_node_does_not_stop_extraction() -> None:
    class _ExplodingInputs(dict):
        def get(self, key, default=None):
            raise RuntimeError("boom")

    graph = {
        "1": {"class_type": "CLIPTextEncode", "inputs": _ExplodingInputs(text="never read")},
        "2": _node("KSampler", steps=12),
    }
    params = extract_parameters(graph)
    assert params.prompt is None
    assert params.steps == 12


def test_non_numeric_strength_falls_back_to_one() -> None:
    graph = {"1": _node("Lora Loader (LoraManager)", loras=[{"name": "ok", "strength": "strong"}])}
    assert extract_parameters(graph).loras == (LoraEntry("ok", 1.0),)


def test_to_dict_uses_document_keys() -> None:
    graph = {
        "1": _node("CLIPTextEncode", text="worst quality, lowres"),
        "2": _node("LoraLoader", lora_name="x.safetensors", strength_model=0.5),
        "3": _node("VHS_VideoCombine", frame_rate=24),
    }
    doc = extract_parameters(graph).to_dict()
    assert doc["negativePrompt"] == "worst quality, lowres"
    assert doc["loras"] == [{"name": "x.safetensors", "strength": 0.5}]
    assert doc["frameRate"] == 24
    assert doc["prompt"] is None
    assert set(doc) >= {"numFrames", "vaeModel", "clipModel", "aspectRatio"}
