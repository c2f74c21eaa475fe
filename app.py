import streamlit as st

import settings

settings.configure_logging()

st.set_page_config(page_title="🍅 Diagnosa Penyakit Daun Tomat", layout="wide")

st.markdown("<h1 style='color:#b22222;'>🍅 Diagnosa Penyakit Daun Tomat</h1>", unsafe_allow_html=True)

st.write("""
Selamat datang di aplikasi diagnosa penyakit daun tomat berbasis deep learning.
Gunakan menu di sidebar untuk membaca informasi penyakit atau mengunggah foto daun untuk didiagnosa.
""")

st.header("🌱 Tentang Aplikasi Ini")
st.markdown("""
Model klasifikasi membedakan **10 kelas** (9 penyakit/hama + daun sehat) dari satu foto daun.
Hasil prediksi dilengkapi deskripsi, cara penanganan, dan pencegahan.

- Jika file model tidak tersedia, aplikasi memakai jaringan cadangan berbobot acak.
- Jika model sama sekali tidak bisa dimuat, aplikasi berjalan dalam **mode simulasi** (hasil acak, hanya untuk uji tampilan).
""")

st.markdown("---")

st.info( "Perlu diingat: Ini adalah alat diagnosis dengan bantuan Kecerdasan Buatan dan sebaiknya digunakan hanya sebagai panduan. Untuk diagnosis konklusif, konsultasikan dengan ahli patologi tanaman profesional."
)
