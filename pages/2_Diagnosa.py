# diagnosa.py
# -- Upload foto daun → DiseaseService.diagnose → label, confidence, info penyakit
# -- + chart probabilitas per kelas + histori sesi (tidak disimpan ke file)

from datetime import datetime

import matplotlib.pyplot as plt
import pandas as pd
import streamlit as st

import settings
from disease_service import DiseaseService

settings.configure_logging()

DISPLAY_CAP = 0.9999


def fmt_pct(p: float, cap: float = DISPLAY_CAP, decimals: int = 2) -> str:
    q = min(float(p), cap)
    return f"{q*100:.{decimals}f}%"


@st.cache_resource
def get_service() -> DiseaseService:
    return DiseaseService()


st.set_page_config(page_title="Diagnosa Penyakit Daun Tomat", layout="wide")
st.title("🔍 Diagnosa Penyakit Daun Tomat")

if "history" not in st.session_state:
    st.session_state["history"] = []

# ----- Sidebar -----
with st.sidebar:
    st.header("Pengaturan Tampilan")
    topk = st.slider("Jumlah alternatif (Top-k)", 1, 5, 3, 1)
    show_full_chart = st.checkbox("Tampilkan chart probabilitas lengkap", True)

service = get_service()

uploaded_file = st.file_uploader("Upload gambar daun tomat", type=["jpg", "jpeg", "png"])

if uploaded_file:
    with st.spinner("Mendiagnosa..."):
        result = service.diagnose(uploaded_file)

    if service.mode == "simulation":
        st.warning("⚠️ Model tidak dapat dimuat, hasil berikut adalah SIMULASI acak.")
    notes = getattr(service.model, "get_load_notes", lambda: [])()
    if notes:
        with st.expander("Catatan pemuatan model"):
            st.markdown("\n".join(f"- {n}" for n in notes))

    col1, col2 = st.columns([1, 2])
    with col1:
        uploaded_file.seek(0)
        st.image(uploaded_file, caption="Input", width="stretch")
    with col2:
        if result.error:
            st.error(f"❌ Diagnosa gagal: {result.error}")
        elif not result.is_confident:
            st.warning(f"Hasil tidak meyakinkan (confidence {fmt_pct(result.confidence)}).")
        else:
            st.success(f"**{result.class_name}** • Confidence: {fmt_pct(result.confidence)}")
        info = result.disease_info
        st.markdown(f"**Deskripsi:** {info.description}")
        st.markdown(f"**Penanganan:** {info.treatment}")
        st.markdown(f"**Pencegahan:** {info.prevention}")

    if result.all_predictions:
        st.markdown("**Alternatif (Top-k)**")
        st.markdown("\n".join([
            f"{'★' if p.class_name == result.class_name else '•'} {p.class_name}: {fmt_pct(p.confidence)}"
            for p in result.all_predictions[:topk]
        ]))

    if show_full_chart and result.grouped_predictions:
        st.subheader("📊 Probabilitas per Kelas")
        names = [p.class_name for p in result.grouped_predictions]
        values = [min(p.confidence, DISPLAY_CAP) for p in result.grouped_predictions]
        fig, ax = plt.subplots()
        ax.barh(names, values, height=0.6)
        ax.invert_yaxis()
        ax.set_xlim(0, 1)
        ax.set_xlabel("Probabilitas (dibatasi < 100%)")
        ax.set_ylabel("Kelas")
        st.pyplot(fig)
        plt.close(fig)

    st.session_state["history"].append({
        "Tanggal": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "Nama File": uploaded_file.name,
        "Prediksi": result.class_name,
        "Probabilitas": fmt_pct(result.confidence),
        "Mode": service.mode,
    })

if st.session_state["history"]:
    st.subheader("📜 Histori Diagnosa (sesi ini)")
    st.dataframe(pd.DataFrame(st.session_state["history"]), width="stretch")
