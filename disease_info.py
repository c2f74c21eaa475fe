# disease_info.py
# Data referensi statis per nama kelas tampilan (bukan turunan dari model).

from dataclasses import dataclass
from types import MappingProxyType

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class DiseaseInfo:
    description: str
    treatment: str
    prevention: str
    severity: str = "—"


_DISEASE_INFO = {
    "Healthy": DiseaseInfo(
        description="Tanaman Anda terlihat sehat: daun hijau merata, tanpa bercak dan tidak menggulung.",
        treatment="Lanjutkan perawatan rutin; siram di pangkal tanaman secukupnya dan beri pupuk seimbang.",
        prevention="Jaga kebersihan lahan, rotasi tanaman, dan periksa bagian bawah daun setiap minggu.",
    ),
    "Bacterial Spot": DiseaseInfo(
        description="Bercak bakteri (Xanthomonas spp.): bercak kecil berair yang berubah cokelat kehitaman "
                    "pada daun, batang, dan buah.",
        treatment="Buang bagian yang terinfeksi. Semprot bakterisida berbahan tembaga. Jangan menyiram daun.",
        prevention="Pakai benih bersertifikat, atur jarak tanam, hindari bekerja saat tanaman basah, rotasi tanaman.",
        severity="Sedang → Tinggi",
    ),
    "Early Blight": DiseaseInfo(
        description="Penyakit jamur (Alternaria) dengan bercak cokelat berlingkar konsentris, "
                    "biasanya mulai dari daun bawah.",
        treatment="Buang daun terinfeksi. Aplikasikan fungisida klorotalonil atau mankozeb sesuai label.",
        prevention="Gunakan varietas tahan, rotasi 2–3 tahun, mulsa untuk mencegah percikan tanah.",
        severity="Tinggi",
    ),
    "Late Blight": DiseaseInfo(
        description="Penyakit oomycete (Phytophthora infestans): bercak berair yang cepat meluas pada daun "
                    "dan batang, buah membusuk; menyebar cepat saat cuaca lembap.",
        treatment="Cabut dan musnahkan tanaman terinfeksi (jangan dikompos). Fungisida tembaga atau metalaksil.",
        prevention="Gunakan varietas tahan, rotasi tanaman, tingkatkan sirkulasi udara, pantau cuaca.",
        severity="Ekstrem",
    ),
    "Leaf Mold": DiseaseInfo(
        description="Penyakit jamur dengan bercak kuning di permukaan atas daun dan lapisan jamur "
                    "kehijauan di permukaan bawah.",
        treatment="Buang daun terinfeksi. Aplikasikan fungisida klorotalonil atau mankozeb. Perbaiki ventilasi.",
        prevention="Turunkan kelembapan, atur jarak tanam, siram di pangkal tanaman.",
        severity="Rendah → Sedang",
    ),
    "Yellow Leaf Curl Virus": DiseaseInfo(
        description="Virus keriting daun kuning (TYLCV): daun mengecil, menguning, menggulung ke atas; "
                    "tanaman kerdil. Ditularkan kutu kebul.",
        treatment="Cabut tanaman terinfeksi sedini mungkin. Kendalikan kutu kebul dengan insektisida selektif "
                  "dan perangkap kuning.",
        prevention="Pakai varietas tahan dan bibit sehat, pasang jaring serangga, bersihkan gulma inang.",
        severity="Sangat Tinggi",
    ),
    "Mosaic Virus": DiseaseInfo(
        description="Virus mosaik (TMV/ToMV): pola belang hijau-kuning, daun menyempit atau keriting, "
                    "pertumbuhan terhambat.",
        treatment="Cabut dan musnahkan tanaman sakit; tidak ada obat kuratif. Kendalikan kutu daun.",
        prevention="Gunakan benih bebas virus, disinfeksi alat dan tangan, kendalikan gulma.",
        severity="Tinggi",
    ),
    "Target Spot": DiseaseInfo(
        description="Penyakit jamur (Corynespora) dengan bercak bercincin konsentris berpusat cokelat "
                    "dan bertepi kuning.",
        treatment="Buang daun terinfeksi. Fungisida klorotalonil atau mankozeb interval 10–14 hari.",
        prevention="Rotasi tanaman, jaga kanopi tetap berangin, minimalkan kelembapan daun.",
        severity="Tinggi",
    ),
    "Spider Mites": DiseaseInfo(
        description="Tungau laba-laba mengisap cairan daun: bintik keperakan/kuning dan jaring halus "
                    "di bawah daun, terutama saat panas dan kering.",
        treatment="Semprot air bertekanan ke bawah daun. Gunakan sabun insektisida atau minyak hortikultura; "
                  "akarisida untuk serangan berat.",
        prevention="Jaga kelembapan cukup, periksa rutin, pelihara musuh alami seperti kumbang ladybug.",
        severity="Rendah → Sedang",
    ),
    "Septoria Leaf Spot": DiseaseInfo(
        description="Penyakit jamur dengan banyak bercak kecil cokelat berpusat abu-abu, mulai dari daun bawah.",
        treatment="Buang daun bawah yang terinfeksi. Fungisida klorotalonil atau mankozeb terjadwal.",
        prevention="Rotasi 2–3 tahun, mulsa, bersihkan sisa tanaman, siram di pangkal.",
        severity="Sedang",
    ),
    UNKNOWN: DiseaseInfo(
        description="Penyakit tidak dapat ditentukan dengan pasti. Coba foto ulang dengan pencahayaan lebih baik "
                    "dan fokus pada bagian daun yang bergejala.",
        treatment="Konsultasikan dengan ahli pertanian atau penyuluh setempat.",
        prevention="Periksa tanaman secara rutin dan jaga kebersihan area tanam.",
    ),
}

DISEASE_INFO = MappingProxyType(_DISEASE_INFO)


def get_disease_info(class_name: str | None) -> DiseaseInfo:
    return DISEASE_INFO.get(class_name or UNKNOWN, DISEASE_INFO[UNKNOWN])
