import streamlit as st

from disease_info import DISEASE_INFO, UNKNOWN, DiseaseInfo

st.set_page_config(page_title="🩺 Informasi Penyakit Tanaman Tomat", layout="wide")

# Urutan tampil: sehat dulu, lalu dari yang paling ringan ke paling berat
ORDERED_KEYS = [
    "Healthy",
    "Spider Mites",
    "Leaf Mold",
    "Septoria Leaf Spot",
    "Target Spot",
    "Early Blight",
    "Bacterial Spot",
    "Mosaic Virus",
    "Yellow Leaf Curl Virus",
    "Late Blight",
]


def render_section(name: str, info: DiseaseInfo):
    st.subheader(name)
    if info.severity and info.severity != "—":
        st.caption(f"Tingkat keparahan (lokal): {info.severity}")
    st.markdown(f"**Deskripsi:** {info.description}")
    st.markdown(f"**Penanganan:** {info.treatment}")
    st.markdown(f"**Pencegahan:** {info.prevention}")
    st.divider()


st.title("🩺 Informasi Penyakit Tanaman Tomat")

for key in ORDERED_KEYS:
    if key in DISEASE_INFO and key != UNKNOWN:
        render_section(key, DISEASE_INFO[key])

st.info( "Perlu diingat: Ini adalah alat diagnosis dengan bantuan Kecerdasan Buatan dan sebaiknya digunakan hanya sebagai panduan. Untuk diagnosis konklusif, konsultasikan dengan ahli patologi tanaman profesional."
)
