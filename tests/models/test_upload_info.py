from voduploader.models.upload_info import UploadInfo


class TestUploadInfo:
    def test_video_response_decoded(self, upload_response):
        response = upload_response('video', media_id='vid-42')
        info = UploadInfo.from_response(response, 'video')

        assert info.is_video
        assert info.media_id == 'vid-42'
        assert info.upload_address.bucket == 'outin-test'
        assert info.upload_address.file_name == 'sv/5c1f/5c1f-1.mp4'
        assert info.upload_address.object_prefix == 'sv/5c1f/'
        assert info.upload_auth.access_key_id == 'STS.key1'
        assert info.upload_auth.security_token == 'token'
        # opaque blobs are kept for progress reports
        assert info.ori_upload_address == response['UploadAddress']
        assert info.request_id == 'req-1'

    def test_image_response(self, upload_info):
        info = upload_info('image', media_id='img-1')
        assert not info.is_video
        assert info.media_id == 'img-1'
        assert info.media_url == 'https://vod.example.com/image/img-1.png'

    def test_attached_response(self, upload_info):
        info = upload_info('attached', media_id='att-1')
        assert info.media_id == 'att-1'
        assert info.media_url.endswith('att-1.srt')
        assert info.file_url.startswith('https://outin-test.')

    def test_bucket_host(self, upload_info):
        info = upload_info()
        assert info.upload_address.bucket_host == 'https://outin-test.oss-cn-shanghai.aliyuncs.com'

    def test_missing_prefix_defaults_empty(self, upload_info):
        info = upload_info(object_prefix=None)
        assert info.upload_address.object_prefix == ''

    def test_repr_hides_secret(self, upload_info):
        assert 'secret' not in repr(upload_info().upload_auth)

    def test_repr_hides_credentials(self, upload_info):
        info = upload_info('video')
        text = repr(info)
        assert info.ori_upload_auth not in text
        assert 'secret' not in text
        assert 'token' not in text
        assert 'STS.key1' in text
