"""
Health Reminder icon: a heart on a round badge.
Used live for the tray icon; run standalone to write icon.ico / icon.png.
"""
from PIL import Image, ImageDraw


BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)

ACTIVE = {
    "badge": (0, 128, 128, 255),
    "rim": (0, 80, 80, 255),
    "shine": (128, 192, 192, 255),
    "heart": (225, 29, 72, 255),
    "heart_hi": (251, 113, 133, 255),
}
# Stopped or paused
IDLE = {
    "badge": (100, 110, 110, 255),
    "rim": (70, 80, 80, 255),
    "shine": (140, 150, 150, 255),
    "heart": (150, 150, 150, 255),
    "heart_hi": (190, 190, 190, 255),
}


def draw_heart(draw, cx, cy, r, fill):
    """Heart centred on (cx, cy): two lobes over a downward triangle."""
    lobe = r // 2
    draw.ellipse([cx - r, cy - lobe - lobe // 2, cx, cy - lobe // 2 + lobe], fill=fill)
    draw.ellipse([cx, cy - lobe - lobe // 2, cx + r, cy - lobe // 2 + lobe], fill=fill)
    draw.polygon([(cx - r + 1, cy), (cx + r - 1, cy), (cx, cy + r)], fill=fill)


def create_icon(size=64, paused=False):
    """Draw the badge at any size (designed at 64px)."""
    colors = IDLE if paused else ACTIVE
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    s = size / 64
    w = max(1, int(s))

    cx, cy = size // 2, size // 2
    r_outer = int(29 * s)
    r_inner = r_outer - max(3, int(4 * s))

    # Badge with dark rim
    draw.ellipse([cx - r_outer, cy - r_outer, cx + r_outer, cy + r_outer],
                 fill=colors["rim"], outline=BLACK, width=w)
    draw.ellipse([cx - r_inner, cy - r_inner, cx + r_inner, cy + r_inner],
                 fill=colors["badge"])
    # Top-left shine arc
    draw.arc([cx - r_inner + w, cy - r_inner + w, cx + r_inner - w, cy + r_inner - w],
             start=200, end=260, fill=colors["shine"], width=max(1, int(2 * s)))

    # Heart with a small highlight
    hr = int(16 * s)
    draw_heart(draw, cx, cy + int(2 * s), hr, colors["heart"])
    hi = max(1, int(3 * s))
    hx, hy = cx - hr // 2, cy - hr // 3
    draw.ellipse([hx - hi, hy - hi, hx + hi, hy + hi], fill=colors["heart_hi"])

    return img


def generate_icon():
    """Generate icon.ico and icon.png files."""
    sizes = [16, 32, 48, 64, 128, 256]
    images = [create_icon(s) for s in sizes]
    # ICO: save largest first, append smaller — PIL requires this order
    images[-1].save('icon.ico', format='ICO', append_images=images[:-1])
    images[-1].save('icon.png', format='PNG')


if __name__ == "__main__":
    generate_icon()
    create_icon(512).save('icon_preview.png', format='PNG')
    print("Generated icon.ico, icon.png, and icon_preview.png (512px)")
